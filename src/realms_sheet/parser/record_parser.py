"""Normalize stored character and creature records.

Saved sheets have accumulated several shapes over time: feats stored as a
bare name or as an object, abilities keyed by full name or by three-letter
abbreviation, proficiency stored on the archetype or at the top level. All
of that is resolved here, once, into the canonical dataclasses; nothing
downstream branches on record shape.
"""

import logging
from collections.abc import Mapping

from realms_sheet.models.catalog import AnyBase, Catalog, SpecificBase
from realms_sheet.models.character import (
    ArchetypeState,
    CharacterBuild,
    FeatEntry,
    ResourcePools,
    SkillEntry,
)
from realms_sheet.models.constants import (
    ABILITY_NAMES,
    ARCHETYPE_POWER,
    ARCHETYPE_TYPES,
    CREATURE_SIZE_MODIFIERS,
    DEFENSE_NAMES,
    FEAT_CATEGORIES,
    ITEM_KINDS,
    Ability,
    Defense,
    ability_from_name,
    defense_from_name,
)
from realms_sheet.models.creature import CreatureBuild, CreatureFeat, CreatureItem, PartSelection
from realms_sheet.parser.catalog_parser import as_list, iter_records, to_float, to_int

logger = logging.getLogger(__name__)

# Record keys for each creature item kind, in lookup order.
_ITEM_KEYS: dict[str, tuple[str, ...]] = {
    "armament": ("armaments", "weapons"),
    "power": ("powers",),
    "technique": ("techniques",),
}


def _first(record: Mapping, *keys: str, default=None):
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return default


def _optional_int(value: object) -> int | None:
    if value is None or value == "":
        return None
    result = to_int(value, default=-1)
    return result if result >= 0 else None


def _lookup(find, record: Mapping, name: str):
    """Catalog entry by the record's id, falling back to its name."""
    found = find(_first(record, "id", "feat_id", "skill_id"))
    if found is None and name:
        found = find(name)
    return found


def parse_abilities(raw: object) -> dict[int, int]:
    abilities = {ab: 0 for ab in Ability}
    if not isinstance(raw, Mapping):
        return abilities
    for key, value in raw.items():
        ability = ability_from_name(key)
        if ability is None:
            logger.debug("ignoring unknown ability key %r", key)
            continue
        abilities[ability] = to_int(value)
    return abilities


def parse_defense_skills(raw: object) -> dict[int, int]:
    defenses = {d: 0 for d in Defense}
    if not isinstance(raw, Mapping):
        return defenses
    for key, value in raw.items():
        defense = defense_from_name(key)
        if defense is not None:
            defenses[defense] = max(0, to_int(value))
    return defenses


def parse_feat_entry(raw: object, category: str = "character", catalog: Catalog | None = None) -> FeatEntry | None:
    """A feat stored as a bare name or as an object."""
    if isinstance(raw, str):
        raw = {"name": raw}
    if not isinstance(raw, Mapping):
        return None
    name = str(raw.get("name") or "").strip()
    definition = _lookup(catalog.find_feat, raw, name) if catalog is not None else None
    if not name and definition is not None:
        name = definition.name
    if not name:
        return None

    stored_category = raw.get("category")
    if stored_category not in FEAT_CATEGORIES:
        stored_category = category

    max_uses = _optional_int(_first(raw, "maxUses", "max_uses", "uses_per_rec"))
    period = _first(raw, "recovery", "recoveryPeriod", "rec_period")
    feat_id = _optional_int(_first(raw, "id", "feat_id"))
    if definition is not None:
        feat_id = definition.feat_id if feat_id is None else feat_id
        max_uses = definition.max_uses if max_uses is None else max_uses
        period = definition.recovery_period if period is None else period
    if max_uses == 0:
        max_uses = None

    # A missing counter means the feat is unused.
    current = _optional_int(_first(raw, "currentUses", "current_uses"))
    if max_uses is not None:
        current = max_uses if current is None else min(current, max_uses)

    return FeatEntry(
        name=name,
        feat_id=feat_id,
        category=stored_category,
        max_uses=max_uses,
        current_uses=current if max_uses is not None else None,
        recovery_period=str(period).strip() if period else None,
    )


def parse_feat_list(raw: object, category: str, catalog: Catalog | None = None) -> list[FeatEntry]:
    entries = []
    for item in as_list(raw) if not isinstance(raw, str) else [raw]:
        entry = parse_feat_entry(item, category, catalog)
        if entry is not None:
            entries.append(entry)
    return entries


def _skill_records(raw: object) -> list[dict]:
    if isinstance(raw, Mapping):
        return iter_records(raw)
    if isinstance(raw, list):
        return [dict(r) for r in raw if isinstance(r, Mapping)]
    return []


def parse_skills(raw: object, catalog: Catalog | None = None, free: object = None) -> list[SkillEntry]:
    """Skill records to SkillEntry, resolving parents to tagged references."""
    free_keys = {str(k).strip().lower() for k in as_list(free)}
    records = _skill_records(raw)
    name_to_id: dict[str, int] = {}
    parsed: list[tuple[dict, int, str]] = []

    for rec in records:
        name = str(rec.get("name") or "").strip()
        definition = _lookup(catalog.find_skill, rec, name) if catalog is not None else None
        skill_id = _optional_int(_first(rec, "id", "skill_id"))
        if skill_id is None and definition is not None:
            skill_id = definition.skill_id
        if not name and definition is not None:
            name = definition.name
        if skill_id is None or not name:
            logger.debug("dropping skill record %r: no resolvable id", rec.get("name"))
            continue
        name_to_id[name.lower()] = skill_id
        parsed.append((rec, skill_id, name))

    skills: list[SkillEntry] = []
    for rec, skill_id, name in parsed:
        definition = catalog.find_skill(skill_id) if catalog is not None else None

        abilities = tuple(
            ab for ab in (ability_from_name(a) for a in as_list(_first(rec, "abilities", "ability")))
            if ab is not None
        )
        if not abilities and definition is not None:
            abilities = definition.abilities

        # A chosen parent on the record wins over the catalog's reference.
        base = None
        parent = _first(rec, "selectedBaseSkillId", "baseSkillId", "base_skill_id", "baseSkill")
        if parent is not None and parent != "":
            parent_id = _optional_int(parent)
            if parent_id is None:
                parent_id = name_to_id.get(str(parent).strip().lower())
            if parent_id == 0:
                base = AnyBase()
            elif parent_id is not None:
                base = SpecificBase(parent_id)
        if base is None and definition is not None:
            base = definition.base

        proficient = bool(_first(rec, "prof", "proficient", default=False))
        value = max(0, to_int(_first(rec, "skill_val", "value")))
        if not proficient:
            value = 0
        skills.append(
            SkillEntry(
                skill_id=skill_id,
                name=name,
                abilities=abilities,
                proficient=proficient,
                value=value,
                base=base,
                free_proficiency=bool(rec.get("free")) or name.lower() in free_keys or str(skill_id) in free_keys,
            )
        )
    return skills


def parse_archetype(record: Mapping) -> ArchetypeState:
    raw = record.get("archetype")
    arch = raw if isinstance(raw, Mapping) else {}
    arch_type = str(_first(arch, "type", default=ARCHETYPE_POWER)).strip().lower()
    if arch_type not in ARCHETYPE_TYPES:
        logger.debug("unknown archetype type %r; using power", arch_type)
        arch_type = ARCHETYPE_POWER

    power = _first(arch, "pow_prof", "powerProficiency")
    if power is None:
        power = _first(record, "pow_prof", "powerProficiency", default=0)
    martial = _first(arch, "mart_prof", "martialProficiency")
    if martial is None:
        martial = _first(record, "mart_prof", "martialProficiency", default=0)

    pow_abil = _first(record, "pow_abil", default=_first(arch, "pow_abil", "ability"))
    mart_abil = _first(record, "mart_abil", default=arch.get("mart_abil"))

    choices: dict[int, str] = {}
    raw_choices = _first(record, "archetypeChoices", default=arch.get("choices"))
    if isinstance(raw_choices, Mapping):
        for level, choice in raw_choices.items():
            lvl = _optional_int(level)
            if lvl is not None and choice in ("innate", "feat"):
                choices[lvl] = choice

    return ArchetypeState(
        type=arch_type,
        power_proficiency=max(0, to_int(power)),
        martial_proficiency=max(0, to_int(martial)),
        power_ability=ability_from_name(pow_abil),
        martial_ability=ability_from_name(mart_abil),
        milestone_choices=choices,
    )


def parse_resources(record: Mapping) -> ResourcePools:
    split = record.get("health_energy_points")
    split = split if isinstance(split, Mapping) else {}
    health = record.get("health")
    energy = record.get("energy")
    return ResourcePools(
        health_points=to_int(_first(record, "healthPoints", default=split.get("health"))),
        energy_points=to_int(_first(record, "energyPoints", default=split.get("energy"))),
        current_health=_optional_int(health.get("current")) if isinstance(health, Mapping) else _optional_int(record.get("currentHealth")),
        current_energy=_optional_int(energy.get("current")) if isinstance(energy, Mapping) else _optional_int(record.get("currentEnergy")),
    )


def build_from_record(record: Mapping, catalog: Catalog | None = None) -> CharacterBuild:
    """Normalize a stored character record into a CharacterBuild."""
    feats = parse_feat_list(record.get("archetypeFeats"), "archetype", catalog)
    feats += parse_feat_list(record.get("feats"), "character", catalog)
    return CharacterBuild(
        name=str(record.get("name") or "Adventurer"),
        level=max(1, to_int(record.get("level"), default=1)),
        experience=max(0, to_int(_first(record, "experience", "xp"))),
        abilities=parse_abilities(record.get("abilities")),
        skills=parse_skills(record.get("skills"), catalog, _first(record, "speciesSkills", "species_skills")),
        defense_skills=parse_defense_skills(_first(record, "defenseSkills", "defenseVals")),
        archetype=parse_archetype(record),
        feats=feats,
        traits=parse_feat_list(record.get("traits"), "character", catalog),
        resources=parse_resources(record),
        speed_base=_optional_int(record.get("speedBase")),
        evasion_base=_optional_int(record.get("evasionBase")),
    )


def _part_selection(raw: object) -> PartSelection | None:
    if isinstance(raw, str):
        raw = {"name": raw}
    if not isinstance(raw, Mapping):
        return None
    name = str(raw.get("name") or "").strip()
    part_id = _optional_int(raw.get("id"))
    if not name and part_id is None:
        return None
    return PartSelection(
        name=name,
        part_id=part_id,
        option_levels=(
            max(0, to_int(raw.get("op_1_lvl"))),
            max(0, to_int(raw.get("op_2_lvl"))),
            max(0, to_int(raw.get("op_3_lvl"))),
        ),
    )


def _damage_types(raw: object) -> list[str]:
    types = []
    for entry in as_list(raw):
        value = entry.get("type") if isinstance(entry, Mapping) else entry
        if value:
            types.append(str(value).strip())
    return types


def _creature_item(raw: object, kind: str) -> CreatureItem | None:
    if isinstance(raw, str):
        raw = {"name": raw}
    if not isinstance(raw, Mapping):
        return None
    name = str(raw.get("name") or "").strip()
    if not name:
        return None
    parts = [p for p in (_part_selection(r) for r in as_list(_first(raw, "parts", "properties"))) if p is not None]
    return CreatureItem(name=name, kind=kind, parts=parts, damage_types=_damage_types(raw.get("damage")))


def _creature_feat(raw: object) -> CreatureFeat | None:
    if isinstance(raw, str):
        raw = {"name": raw}
    if not isinstance(raw, Mapping) or not str(raw.get("name") or "").strip():
        return None
    return CreatureFeat(
        name=str(raw["name"]).strip(),
        points=to_float(_first(raw, "points", "cost"), default=1.0),
        feat_id=_optional_int(raw.get("id")),
    )


def _strings(raw: object) -> list[str]:
    out = []
    for entry in as_list(raw):
        value = entry.get("name") if isinstance(entry, Mapping) else entry
        if value:
            out.append(str(value).strip())
    return out


def creature_from_record(record: Mapping, catalog: Catalog | None = None) -> CreatureBuild:
    """Normalize a stored creature record into a CreatureBuild."""
    items: list[CreatureItem] = []
    for kind in ITEM_KINDS:
        for key in _ITEM_KEYS[kind]:
            for raw in as_list(record.get(key)) if not isinstance(record.get(key), str) else []:
                item = _creature_item(raw, kind)
                if item is not None:
                    items.append(item)

    level = to_float(record.get("level"), default=1.0)
    size = str(record.get("size") or "medium").strip().lower()
    if size not in CREATURE_SIZE_MODIFIERS:
        logger.debug("unknown creature size %r; using medium", size)
        size = "medium"
    return CreatureBuild(
        name=str(record.get("name") or "Creature"),
        level=level if level > 0 else 1.0,
        size=size,
        abilities=parse_abilities(record.get("abilities")),
        skills=parse_skills(record.get("skills"), catalog),
        defense_skills=parse_defense_skills(_first(record, "defenseSkills", "defenseVals")),
        archetype=parse_archetype(record),
        items=items,
        feats=[f for f in (_creature_feat(r) for r in as_list(record.get("feats"))) if f is not None],
        resistances=_strings(record.get("resistances")),
        weaknesses=_strings(record.get("weaknesses")),
        immunities=_strings(record.get("immunities")),
        condition_immunities=_strings(_first(record, "conditionImmunities", "condition_immunities")),
        health_points=max(0, to_int(_first(record, "healthPoints", "hitPoints"))),
        energy_points=max(0, to_int(record.get("energyPoints"))),
    )


def _ability_name(ability: int | None) -> str | None:
    return ABILITY_NAMES[ability].lower() if ability is not None else None


def _defense_key(defense: int) -> str:
    words = DEFENSE_NAMES[defense].split()
    return words[0].lower() + "".join(w.capitalize() for w in words[1:])


def _feat_record(entry: FeatEntry) -> dict:
    out: dict = {"name": entry.name, "category": entry.category}
    if entry.feat_id is not None:
        out["id"] = entry.feat_id
    if entry.max_uses is not None:
        out["maxUses"] = entry.max_uses
        out["currentUses"] = entry.max_uses if entry.current_uses is None else entry.current_uses
    if entry.recovery_period:
        out["recovery"] = entry.recovery_period
    return out


def record_from_build(build: CharacterBuild) -> dict:
    """Write the mutable fields of *build* back into a storable record."""
    arch = build.archetype
    skills = []
    for s in build.skills:
        rec: dict = {
            "id": s.skill_id,
            "name": s.name,
            "prof": s.proficient,
            "skill_val": s.value,
            "abilities": [ABILITY_NAMES[a].lower() for a in s.abilities],
        }
        if isinstance(s.base, SpecificBase):
            rec["baseSkillId"] = s.base.skill_id
        elif s.base is not None:
            rec["baseSkillId"] = 0
        if s.free_proficiency:
            rec["free"] = True
        skills.append(rec)

    res = build.resources
    record: dict = {
        "name": build.name,
        "level": build.level,
        "experience": build.experience,
        "abilities": {ABILITY_NAMES[ab].lower(): build.ability(ab) for ab in Ability},
        "skills": skills,
        "defenseSkills": {_defense_key(d): int(build.defense_skills.get(d, 0)) for d in Defense},
        "archetype": {
            "type": arch.type,
            "pow_prof": arch.power_proficiency,
            "mart_prof": arch.martial_proficiency,
            "pow_abil": _ability_name(arch.power_ability),
            "mart_abil": _ability_name(arch.martial_ability),
        },
        "archetypeChoices": {str(k): v for k, v in sorted(arch.milestone_choices.items())},
        "archetypeFeats": [_feat_record(f) for f in build.feats if f.category == "archetype"],
        "feats": [_feat_record(f) for f in build.feats if f.category != "archetype"],
        "traits": [_feat_record(t) for t in build.traits],
        "healthPoints": res.health_points,
        "energyPoints": res.energy_points,
    }
    if res.current_health is not None:
        record["currentHealth"] = res.current_health
    if res.current_energy is not None:
        record["currentEnergy"] = res.current_energy
    if build.speed_base is not None:
        record["speedBase"] = build.speed_base
    if build.evasion_base is not None:
        record["evasionBase"] = build.evasion_base
    return record
