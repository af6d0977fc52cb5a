from typing import Dict, Iterable, Optional, Tuple, Union

from sqlmodel import Session, col, select

from models.enums import CatalogKind
from models.menu_items import MenuItem
from models.special_dishes import SpecialDish
from services.errors import ItemNotFound

CatalogEntry = Union[MenuItem, SpecialDish]

_CATALOG_MODELS = {
    CatalogKind.MENU: MenuItem,
    CatalogKind.SPECIAL: SpecialDish,
}


def get_catalog_entry(session: Session, kind: CatalogKind, catalog_id: int) -> Optional[CatalogEntry]:
    """Busca la entrada en el catálogo indicado, ignorando eliminadas."""
    model = _CATALOG_MODELS[CatalogKind(kind)]
    entry = session.get(model, catalog_id)
    if entry is None or entry.deleted:
        return None
    return entry


def resolve_price(session: Session, kind: CatalogKind, catalog_id: int) -> float:
    """Precio vigente de una referencia de catálogo; la entrada debe estar disponible."""
    entry = get_catalog_entry(session, kind, catalog_id)
    if entry is None or not entry.available:
        raise ItemNotFound(f"Plato {CatalogKind(kind).value}:{catalog_id} no encontrado o no disponible.")
    return entry.price


def resolve_names(session: Session, refs: Iterable[Tuple[CatalogKind, int]]) -> Dict[Tuple[CatalogKind, int], str]:
    """Nombres de varias referencias con una consulta por catálogo (incluye eliminadas)."""
    wanted: Dict[CatalogKind, set] = {kind: set() for kind in _CATALOG_MODELS}
    for kind, catalog_id in refs:
        wanted[CatalogKind(kind)].add(catalog_id)

    names = {}
    for kind, ids in wanted.items():
        if not ids:
            continue
        model = _CATALOG_MODELS[kind]
        rows = session.exec(select(model.id, model.name).where(col(model.id).in_(ids))).all()
        for catalog_id, name in rows:
            names[(kind, catalog_id)] = name
    return names
