"""
Tipos y utilidades puras para el pipeline S3 -> DynamoDB.

Se mantienen libres de I/O para poder testearlos fácilmente:
- canonicalización de paths (clave de la tabla)
- clasificación Page / Section
- conversión de documentos a filas con defaults explícitos
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from dbsync.shared.exceptions.sync import DocumentParseError

DEFAULT_INDEX_DOCUMENT = "index.json"


class RecordKind(str, Enum):
    """Tipo de registro, decidido solo por la lista `children` del documento."""

    PAGE = "page"
    SECTION = "section"


# Defaults por field cuando el documento no lo trae (o trae null).
# El pipeline es permisivo: no valida completitud del esquema antes de escribir.
FIELD_DEFAULTS: dict[str, Any] = {
    "date": "",
    "title": "",
    "summary": "",
    "content": "",
    "images": [],
    "tags": [],
    "categories": [],
    "children": [],
}


@dataclass(frozen=True)
class ClassifiedDocument:
    """Documento parseado junto con su tipo y paths canónicos."""

    kind: RecordKind
    key: str
    path: str
    section_path: str
    document: dict[str, Any]


def canonicalize(path: Optional[str], index_document: str = DEFAULT_INDEX_DOCUMENT) -> str:
    """
    Normaliza un path (o una key de S3) a la clave de la tabla.

    - quita el componente final `index.json` si existe
    - un único slash inicial, sin slash final
    - el path vacío es la raíz `/`

    Es idempotente: canonicalize(canonicalize(p)) == canonicalize(p).
    """
    trimmed = (path or "").strip("/")
    while trimmed == index_document or trimmed.endswith("/" + index_document):
        trimmed = trimmed[: -len(index_document)].rstrip("/")
    return "/" + trimmed


def is_index_key(key: str, index_document: str = DEFAULT_INDEX_DOCUMENT) -> bool:
    """True si el último componente de la key es exactamente el index document."""
    return key.rsplit("/", 1)[-1] == index_document


def path_in_prefix(path: str, prefix: str, index_document: str = DEFAULT_INDEX_DOCUMENT) -> bool:
    """
    True si la fila con este path canónico sale de una key que el listado
    con `prefix` puede devolver. Se compara la key del index document
    (con y sin slash inicial), no el path, porque el prefijo de S3 es un
    prefijo de string y no de directorio.
    """
    if not prefix:
        return True
    directory = path.strip("/")
    key = f"{directory}/{index_document}" if directory else index_document
    return key.startswith(prefix) or ("/" + key).startswith(prefix)


def parse_document(key: str, raw: Optional[str]) -> dict[str, Any]:
    """Parsea el contenido de un index.json. Debe ser un objeto JSON."""
    if raw is None:
        raise DocumentParseError(key, "el objeto no tiene contenido")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise DocumentParseError(key, str(e)) from e
    if not isinstance(data, dict):
        raise DocumentParseError(key, f"se esperaba un objeto JSON, llegó {type(data).__name__}")
    return data


def classify(
    key: str,
    document: dict[str, Any],
    index_document: str = DEFAULT_INDEX_DOCUMENT,
) -> ClassifiedDocument:
    """
    Decide si el documento es Page o Section y deriva sus paths.

    - Section (children no vacío): path = directorio del index.json, section = el mismo directorio
    - Page: path = directorio del index.json, section = directorio padre
    """
    parts = key.split("/")
    directory = "/".join(parts[:-1])

    if normalize_array(document.get("children")):
        kind = RecordKind.SECTION
        section = directory
    else:
        kind = RecordKind.PAGE
        section = "/".join(parts[:-2])

    return ClassifiedDocument(
        kind=kind,
        key=key,
        path=canonicalize(directory, index_document),
        section_path=canonicalize(section, index_document),
        document=document,
    )


def field_text(document: dict[str, Any], name: str) -> str:
    """Valor escalar del documento como string, con el default de FIELD_DEFAULTS."""
    value = document.get(name)
    if value is None:
        return FIELD_DEFAULTS.get(name, "")
    if isinstance(value, str):
        return value
    return str(value)


def normalize_array(elements: Any) -> list:
    """None -> []; un string suelto se trata como lista de un elemento."""
    if elements is None:
        return []
    if isinstance(elements, (str, dict)):
        return [elements]
    return list(elements)


def string_list(document: dict[str, Any], name: str) -> list[str]:
    """Lista ordenada de strings, sin reordenar ni deduplicar."""
    return [str(x) for x in normalize_array(document.get(name)) if x is not None]


def first_string(elements: list[str]) -> str:
    if not elements:
        return ""
    return elements[0]


def search_content(document: dict[str, Any]) -> str:
    """
    Texto de búsqueda: categories, tags, title, summary y content en
    minúsculas, separados por un espacio.
    """
    return " ".join(
        [
            " ".join(string_list(document, "categories")).lower(),
            " ".join(string_list(document, "tags")).lower(),
            field_text(document, "title").lower(),
            field_text(document, "summary").lower(),
            field_text(document, "content").lower(),
        ]
    )


def child_paths(document: dict[str, Any], index_document: str = DEFAULT_INDEX_DOCUMENT) -> list[str]:
    """Paths canónicos de los hijos de una sección (hijos sin `link` se omiten)."""
    paths: list[str] = []
    for child in normalize_array(document.get("children")):
        link = child.get("link") if isinstance(child, dict) else child
        if isinstance(link, str) and link:
            paths.append(canonicalize(link, index_document))
    return paths


def build_page_row(item: ClassifiedDocument, *, sync_run_id: str) -> dict[str, Any]:
    """Mapea una Page a un dict listo para PutRequest (ver FIELD_DEFAULTS)."""
    doc = item.document
    images = string_list(doc, "images")
    tags = string_list(doc, "tags")
    categories = string_list(doc, "categories")

    return {
        "pagePath": item.path,
        "pageSection": item.section_path,
        "pageKind": RecordKind.PAGE.value,
        "pageDate": field_text(doc, "date"),
        "pageTitle": field_text(doc, "title"),
        "pageSummary": field_text(doc, "summary"),
        "pageContentHtml": field_text(doc, "content"),
        "pageTags": " ".join(tags),
        "pageCategories": " ".join(categories),
        "pageImage": first_string(images),
        "pageSearchContent": search_content(doc),
        "pageImageArray": images,
        "pageTagArray": tags,
        "pageCategoryArray": categories,
        "syncRunId": sync_run_id,
    }


def build_section_row(
    item: ClassifiedDocument,
    *,
    sync_run_id: str,
    index_document: str = DEFAULT_INDEX_DOCUMENT,
) -> dict[str, Any]:
    """Mapea una Section: metadatos propios más la lista de hijos."""
    doc = item.document
    children = child_paths(doc, index_document)

    return {
        "pagePath": item.path,
        "pageSection": item.section_path,
        "pageKind": RecordKind.SECTION.value,
        "pageDate": field_text(doc, "date"),
        "pageTitle": field_text(doc, "title"),
        "pageSummary": field_text(doc, "summary"),
        "sectionChildCount": len(normalize_array(doc.get("children"))),
        "sectionChildArray": children,
        "syncRunId": sync_run_id,
    }
