#!/usr/bin/env python3
"""Display-order editing for field rows.

Fields are ordered within their group: all list fields form one group,
header fields group by tab and sub-tab, detail fields by tab, sub-tab and
relationship. A row without an explicit ``order`` sorts by its position in
the input list. Every function returns a new list; the input is untouched.
"""

from typing import Dict, List, Optional, Sequence

from formgen.config import section
from formgen.model.fields import FieldArea, FieldDefinition, value_of


def group_key(definition: FieldDefinition, config=None) -> str:
    """Key of the ordering group a row belongs to."""
    grouping_cfg = section("grouping", config)
    tab = definition.tab_name or grouping_cfg["default_tab"]
    sub = definition.sub_tab_name or ""
    area = value_of(definition.area)
    if area == FieldArea.LIST.value:
        return "list"
    if area == FieldArea.HEADER.value:
        return f"header:{tab}:{sub}"
    rel = definition.relationship or grouping_cfg["default_relationship"]
    return f"detail:{tab}:{sub}:{rel}"


def _effective_order(definition: FieldDefinition, index: int) -> int:
    return definition.order if definition.order is not None else index


def _group_indices(fields: Sequence[FieldDefinition], key: str, config=None) -> List[int]:
    """Indices of the group's rows, sorted by effective order."""
    members = [i for i, f in enumerate(fields) if group_key(f, config) == key]
    return sorted(members, key=lambda i: _effective_order(fields[i], i))


def _swap(fields: Sequence[FieldDefinition], index: int, offset: int, config=None) -> List[FieldDefinition]:
    result = list(fields)
    if index < 0 or index >= len(result):
        return result
    key = group_key(result[index], config)
    ordered = _group_indices(result, key, config)
    position = ordered.index(index)
    target = position + offset
    if target < 0 or target >= len(ordered):
        return result

    # Re-number the whole group so swapped orders never collide.
    orders: Dict[int, int] = {i: n for n, i in enumerate(ordered)}
    other = ordered[target]
    orders[index], orders[other] = orders[other], orders[index]
    for i, order in orders.items():
        result[i] = result[i].copy(order=order)
    return result


def move_field_up(fields: Sequence[FieldDefinition], index: int, config=None) -> List[FieldDefinition]:
    """Move the row at ``index`` one place earlier within its group."""
    return _swap(fields, index, -1, config)


def move_field_down(fields: Sequence[FieldDefinition], index: int, config=None) -> List[FieldDefinition]:
    """Move the row at ``index`` one place later within its group."""
    return _swap(fields, index, 1, config)


def normalize_field_orders(fields: Sequence[FieldDefinition], config=None) -> List[FieldDefinition]:
    """Give every group consecutive orders 0..n-1, keeping the current sequence."""
    result = list(fields)
    seen = set()
    for f in fields:
        key = group_key(f, config)
        if key in seen:
            continue
        seen.add(key)
        for n, i in enumerate(_group_indices(fields, key, config)):
            result[i] = result[i].copy(order=n)
    return result


def sort_by_order(fields: Sequence[FieldDefinition], config=None,
                  key: Optional[str] = None) -> List[FieldDefinition]:
    """Rows of one group (or, with no key, all rows grouped) in display order."""
    if key is not None:
        return [fields[i] for i in _group_indices(fields, key, config)]
    ordered = []
    seen = set()
    for f in fields:
        k = group_key(f, config)
        if k not in seen:
            seen.add(k)
            ordered.extend(fields[i] for i in _group_indices(fields, k, config))
    return ordered
