"""Parse codex records into catalog dataclasses.

Codex tables arrive as JSON objects, either as a list of records or as an
id -> record mapping. Field names follow the codex schema:

  feats:  id, name, description, category, lvl_req, ability_req[],
          abil_req_val[], skill_req[], skill_req_val[], mart_prof_req,
          pow_prof_req, char_feat, state_feat, uses_per_rec (or max_uses),
          rec_period
  skills: id, name, description, ability (name, comma list, or list),
          base_skill_id (absent: base skill; 0: any base skill; n: skill n)
  parts:  id, name, base_tp, op_1_tp, op_2_tp, op_3_tp
  creature feats: id, name, points (or feat_points)

Malformed values degrade to safe defaults; records without an id or a name
are dropped.
"""

import logging
from collections.abc import Iterable, Mapping

from realms_sheet.models.catalog import (
    AbilityRequirement,
    AnyBase,
    Catalog,
    FeatDefinition,
    SkillBonusRequirement,
    SkillDefinition,
    SpecificBase,
)
from realms_sheet.models.constants import ability_from_name
from realms_sheet.models.creature import PartDefinition

logger = logging.getLogger(__name__)


def to_int(value: object, default: int = 0) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def to_float(value: object, default: float = 0.0) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def as_list(value: object) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [value]


def iter_records(raw: Iterable | Mapping | None) -> list[dict]:
    """Accept a list of records or an id -> record mapping."""
    if raw is None:
        return []
    if isinstance(raw, Mapping):
        out = []
        for key, record in raw.items():
            if isinstance(record, Mapping):
                rec = dict(record)
                rec.setdefault("id", key)
                out.append(rec)
        return out
    return [dict(r) for r in raw if isinstance(r, Mapping)]


def _id_and_name(record: Mapping) -> tuple[int, str] | None:
    name = str(record.get("name") or "").strip()
    record_id = to_int(record.get("id"), default=-1)
    if not name or record_id < 0:
        return None
    return record_id, name


def feat_category(record: Mapping) -> str:
    if record.get("state_feat"):
        return "state"
    if record.get("char_feat"):
        return "character"
    return "archetype"


def feat_from_record(record: Mapping, skills: Catalog | None = None) -> FeatDefinition | None:
    """Build a FeatDefinition; *skills* resolves skill requirement names to ids."""
    ident = _id_and_name(record)
    if ident is None:
        logger.debug("dropping feat record without id/name: %r", record.get("name"))
        return None
    feat_id, name = ident

    ability_reqs: list[AbilityRequirement] = []
    ability_names = as_list(record.get("ability_req"))
    ability_values = as_list(record.get("abil_req_val"))
    for i, ability_name in enumerate(ability_names):
        value = to_int(ability_values[i]) if i < len(ability_values) else 0
        ability_reqs.append(
            AbilityRequirement(
                ability=ability_from_name(ability_name),
                name=str(ability_name),
                value=value,
            )
        )

    skill_reqs: list[SkillBonusRequirement] = []
    skill_names = as_list(record.get("skill_req"))
    skill_values = as_list(record.get("skill_req_val"))
    for i, skill_ref in enumerate(skill_names):
        value = to_int(skill_values[i]) if i < len(skill_values) else 0
        resolved = skills.find_skill(skill_ref) if skills is not None else None
        skill_reqs.append(
            SkillBonusRequirement(
                skill_name=resolved.name if resolved is not None else str(skill_ref),
                value=value,
                skill_id=resolved.skill_id if resolved is not None else None,
            )
        )

    uses = to_int(record.get("uses_per_rec", record.get("max_uses")))
    period = str(record.get("rec_period") or "").strip() or None

    return FeatDefinition(
        feat_id=feat_id,
        name=name,
        category=feat_category(record),
        description=str(record.get("description") or ""),
        level_requirement=to_int(record.get("lvl_req")),
        ability_requirements=ability_reqs,
        skill_requirements=skill_reqs,
        martial_proficiency_requirement=to_int(record.get("mart_prof_req")),
        power_proficiency_requirement=to_int(record.get("pow_prof_req")),
        max_uses=uses if uses > 0 else None,
        recovery_period=period,
    )


def skill_from_record(record: Mapping) -> SkillDefinition | None:
    ident = _id_and_name(record)
    if ident is None:
        logger.debug("dropping skill record without id/name: %r", record.get("name"))
        return None
    skill_id, name = ident

    abilities = []
    for ability_name in as_list(record.get("ability")):
        ability = ability_from_name(ability_name)
        if ability is not None:
            abilities.append(ability)

    base = None
    if record.get("base_skill_id") is not None:
        base_id = to_int(record.get("base_skill_id"), default=-1)
        if base_id == 0:
            base = AnyBase()
        elif base_id > 0:
            base = SpecificBase(base_id)

    return SkillDefinition(
        skill_id=skill_id,
        name=name,
        abilities=tuple(abilities),
        base=base,
        description=str(record.get("description") or ""),
    )


def part_from_record(record: Mapping) -> PartDefinition | None:
    ident = _id_and_name(record)
    if ident is None:
        return None
    part_id, name = ident
    return PartDefinition(
        part_id=part_id,
        name=name,
        base_tp=to_float(record.get("base_tp")),
        option_tp=(
            to_float(record.get("op_1_tp")),
            to_float(record.get("op_2_tp")),
            to_float(record.get("op_3_tp")),
        ),
    )


def parts_from_records(raw: Iterable | Mapping | None) -> list[PartDefinition]:
    return [p for p in (part_from_record(r) for r in iter_records(raw)) if p is not None]


def creature_feat_costs(raw: Iterable | Mapping | None) -> dict[int, float]:
    """Feat-point cost of each creature feat, keyed by codex id."""
    costs: dict[int, float] = {}
    for record in iter_records(raw):
        ident = _id_and_name(record)
        value = record.get("points", record.get("feat_points"))
        if ident is None or value is None:
            continue
        costs[ident[0]] = to_float(value)
    return costs


def catalog_from_records(
    feats: Iterable | Mapping | None = None,
    skills: Iterable | Mapping | None = None,
) -> Catalog:
    """Build a Catalog from raw codex feat and skill tables."""
    skill_defs = [s for s in (skill_from_record(r) for r in iter_records(skills)) if s is not None]
    skill_catalog = Catalog(skills=skill_defs)
    feat_defs = [
        f for f in (feat_from_record(r, skill_catalog) for r in iter_records(feats)) if f is not None
    ]
    return Catalog(feats=feat_defs, skills=skill_defs)
