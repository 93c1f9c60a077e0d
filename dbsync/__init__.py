"""
dbsync: sincronización one-way de documentos JSON en S3 hacia una tabla DynamoDB.

Se ejecuta como job (CLI o Lambda), una corrida por invocación.
"""

__version__ = "1.0.0"
