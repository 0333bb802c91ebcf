from __future__ import annotations
"""Read-only snapshot of the Region -> Area -> Territory -> Dealer hierarchy.

Built once per form session (or per request on the server side) and shared by
both assignment forms. Lookups are total: an id that does not resolve, or an
edge pointing at a missing parent, simply yields ``None`` / no match.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def same_id(a: Any, b: Any) -> bool:
    """Id equality tolerant of int/str mixing ("3" == 3); blanks never match."""
    if is_blank(a) or is_blank(b):
        return False
    return a == b or str(a) == str(b)


def _pick(row: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for k in keys:
        if k in row and row[k] is not None:
            return row[k]
    return default


@dataclass(frozen=True)
class Region:
    id: Any
    name: str

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> 'Region':
        return cls(id=row.get('id'), name=_pick(row, 'name', default=''))


@dataclass(frozen=True)
class Area:
    id: Any
    name: str
    region_id: Any = None

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> 'Area':
        return cls(id=row.get('id'), name=_pick(row, 'name', default=''), region_id=_pick(row, 'region_id', 'regionId'))


@dataclass(frozen=True)
class Territory:
    id: Any
    name: str
    area_id: Any = None

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> 'Territory':
        return cls(id=row.get('id'), name=_pick(row, 'name', default=''), area_id=_pick(row, 'area_id', 'areaId'))


@dataclass(frozen=True)
class Dealer:
    id: Any
    business_name: str
    dealer_code: str = ''
    region_id: Any = None
    area_id: Any = None
    territory_id: Any = None
    manager_id: Any = None

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> 'Dealer':
        return cls(
            id=row.get('id'),
            business_name=_pick(row, 'business_name', 'businessName', default=''),
            dealer_code=_pick(row, 'dealer_code', 'dealerCode', default=''),
            region_id=_pick(row, 'region_id', 'regionId'),
            area_id=_pick(row, 'area_id', 'areaId'),
            territory_id=_pick(row, 'territory_id', 'territoryId'),
            manager_id=_pick(row, 'manager_id', 'managerId'),
        )


def _index(rows: Iterable[Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for r in rows:
        if not is_blank(r.id):
            out.setdefault(str(r.id), r)
    return out


class OrgHierarchyStore:
    def __init__(self, regions: Iterable[Region] = (), areas: Iterable[Area] = (),
                 territories: Iterable[Territory] = (), dealers: Iterable[Dealer] = ()):
        self.regions: Tuple[Region, ...] = tuple(regions)
        self.areas: Tuple[Area, ...] = tuple(areas)
        self.territories: Tuple[Territory, ...] = tuple(territories)
        self.dealers: Tuple[Dealer, ...] = tuple(dealers)
        self._regions = _index(self.regions)
        self._areas = _index(self.areas)
        self._territories = _index(self.territories)
        self._dealers = _index(self.dealers)

    @classmethod
    def from_records(cls, regions=(), areas=(), territories=(), dealers=()) -> 'OrgHierarchyStore':
        """Build from plain dict rows as returned by the list endpoints (snake or camel keys)."""
        return cls(
            regions=[Region.from_record(r) for r in regions or ()],
            areas=[Area.from_record(a) for a in areas or ()],
            territories=[Territory.from_record(t) for t in territories or ()],
            dealers=[Dealer.from_record(d) for d in dealers or ()],
        )

    # --- lookups ---
    def region(self, region_id: Any) -> Optional[Region]:
        return None if is_blank(region_id) else self._regions.get(str(region_id))

    def area(self, area_id: Any) -> Optional[Area]:
        return None if is_blank(area_id) else self._areas.get(str(area_id))

    def territory(self, territory_id: Any) -> Optional[Territory]:
        return None if is_blank(territory_id) else self._territories.get(str(territory_id))

    def dealer(self, dealer_id: Any) -> Optional[Dealer]:
        return None if is_blank(dealer_id) else self._dealers.get(str(dealer_id))

    def region_of_area(self, area_id: Any) -> Any:
        a = self.area(area_id)
        return a.region_id if a else None

    def area_of_territory(self, territory_id: Any) -> Any:
        t = self.territory(territory_id)
        return t.area_id if t else None

    # --- option sets ---
    def areas_in_region(self, region_id: Any) -> List[Area]:
        if is_blank(region_id):
            return list(self.areas)
        return [a for a in self.areas if same_id(a.region_id, region_id)]

    def territories_in_area(self, area_id: Any) -> List[Territory]:
        if is_blank(area_id):
            return list(self.territories)
        return [t for t in self.territories if same_id(t.area_id, area_id)]

    def dealers_matching(self, region_id: Any = None, area_id: Any = None, territory_id: Any = None) -> List[Dealer]:
        """Dealers under the most specific of territory / area / region that is set."""
        if not is_blank(territory_id):
            field, wanted = 'territory_id', territory_id
        elif not is_blank(area_id):
            field, wanted = 'area_id', area_id
        elif not is_blank(region_id):
            field, wanted = 'region_id', region_id
        else:
            return list(self.dealers)
        return [d for d in self.dealers if same_id(self.dealer_scope(d)[field], wanted)]

    # --- derived scope ---
    def expand_scope(self, region_id: Any = None, area_id: Any = None,
                     territory_id: Any = None, dealer_id: Any = None) -> Dict[str, Any]:
        """Fill ancestors that can be derived from a more specific selection.

        Explicit values are never overwritten; only blanks are filled.
        """
        scope = {
            'region_id': None if is_blank(region_id) else region_id,
            'area_id': None if is_blank(area_id) else area_id,
            'territory_id': None if is_blank(territory_id) else territory_id,
            'dealer_id': None if is_blank(dealer_id) else dealer_id,
        }
        d = self.dealer(scope['dealer_id'])
        if d is not None:
            for key in ('region_id', 'area_id', 'territory_id'):
                if scope[key] is None and not is_blank(getattr(d, key)):
                    scope[key] = getattr(d, key)
        if scope['area_id'] is None:
            scope['area_id'] = self.area_of_territory(scope['territory_id'])
        if scope['region_id'] is None:
            scope['region_id'] = self.region_of_area(scope['area_id'])
        return scope

    def dealer_scope(self, dealer: Dealer) -> Dict[str, Any]:
        return self.expand_scope(dealer.region_id, dealer.area_id, dealer.territory_id)

    def scope_conflicts(self, region_id: Any = None, area_id: Any = None, territory_id: Any = None) -> List[str]:
        """Return the fields whose value contradicts its ancestor (empty when consistent).

        Unknown ids are reported too, so callers can reject dangling references.
        """
        conflicts: List[str] = []
        if not is_blank(region_id) and self.region(region_id) is None:
            conflicts.append('region_id')
        if not is_blank(area_id):
            area = self.area(area_id)
            if area is None or (not is_blank(region_id) and not same_id(area.region_id, region_id)):
                conflicts.append('area_id')
        if not is_blank(territory_id):
            territory = self.territory(territory_id)
            if territory is None:
                conflicts.append('territory_id')
            else:
                parent_area = area_id if not is_blank(area_id) else None
                if parent_area is not None and not same_id(territory.area_id, parent_area):
                    conflicts.append('territory_id')
                elif parent_area is None and not is_blank(region_id) \
                        and not same_id(self.region_of_area(territory.area_id), region_id):
                    conflicts.append('territory_id')
        return conflicts


__all__ = ['Region', 'Area', 'Territory', 'Dealer', 'OrgHierarchyStore', 'is_blank', 'same_id']
