"""
Pipeline de sincronización one-way: S3 (index.json) -> DynamoDB.

Este paquete está diseñado para ejecutarse como job (CLI / Lambda).

Objetivos de diseño:
- Idempotencia: cada fila se sobrescribe por su path canónico.
- Escrituras por lotes con backoff exponencial ante throttling.
- Una sola escritura en vuelo a la vez: el driver espera cada batch.
- Los batches abandonados se cuentan y se reportan al final.
"""
