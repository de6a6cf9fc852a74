"""Dump computed stats and budgets for a character build.

Loads a stored character record (or builds a sample one) and runs it through
the full pipeline: record normalization → derived stats → budgets →
validation.

Usage:
    python -m scripts.dump_character
    python -m scripts.dump_character --character-file hero.json
    python -m scripts.dump_character --character-file hero.json \\
        --feats-file feats.json --skills-file skills.json --json
    python -m scripts.dump_character --rules-json '{"COMBAT": {"baseDefense": 8}}'

Without --character-*, a sample level-4 powered-martial build is used.
"""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any

from realms_sheet.engine.sheet_engine import SheetEngine
from realms_sheet.models.catalog import Catalog, SpecificBase
from realms_sheet.models.character import CharacterBuild, FeatEntry, SkillEntry
from realms_sheet.models.constants import (
    ABILITY_NAMES,
    ARCHETYPE_POWERED_MARTIAL,
    DEFENSE_NAMES,
    Ability,
    Defense,
)
from realms_sheet.models.core_rules import CoreRules
from realms_sheet.parser.catalog_parser import catalog_from_records
from realms_sheet.parser.record_parser import build_from_record


def _load_json_arg(raw_json: str | None, file_path: Path | None) -> Any:
    if raw_json is not None:
        return json.loads(raw_json)
    if file_path is not None:
        return json.loads(file_path.read_text())
    return None


def _load_object_arg(raw_json: str | None, file_path: Path | None) -> dict[str, Any]:
    payload = _load_json_arg(raw_json, file_path)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValueError("JSON payload must be an object")
    return payload


def _json_safe(value: Any) -> Any:
    """Recursively normalize values for JSON serialization."""
    if isinstance(value, dict):
        return {(int(k) if isinstance(k, int) else k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    if isinstance(value, set):
        try:
            ordered = sorted(value)
        except TypeError:
            ordered = sorted(value, key=repr)
        return [_json_safe(v) for v in ordered]
    if isinstance(value, (Ability, Defense)):
        return int(value)
    return value


def sample_build() -> CharacterBuild:
    """A level-4 powered-martial character for smoke-testing the pipeline."""
    build = CharacterBuild(name="Sample Warden", level=4)
    build.abilities = {
        Ability.STRENGTH: 3,
        Ability.VITALITY: 2,
        Ability.AGILITY: 1,
        Ability.ACUITY: 0,
        Ability.INTELLIGENCE: -1,
        Ability.CHARISMA: 2,
    }
    build.skills = [
        SkillEntry(1, "Athletics", (Ability.STRENGTH, Ability.VITALITY), proficient=True, value=2),
        SkillEntry(2, "Climbing", (Ability.STRENGTH,), proficient=True, value=1,
                   base=SpecificBase(1)),
        SkillEntry(3, "Insight", (Ability.ACUITY,)),
    ]
    build.defense_skills[Defense.MIGHT] = 1
    build.archetype.type = ARCHETYPE_POWERED_MARTIAL
    build.archetype.martial_proficiency = 1
    build.archetype.power_proficiency = 1
    build.archetype.power_ability = Ability.CHARISMA
    build.archetype.martial_ability = Ability.STRENGTH
    build.archetype.milestone_choices = {4: "feat"}
    build.feats = [
        FeatEntry("Action Surge", category="archetype", max_uses=1, current_uses=0,
                  recovery_period="Partial Recovery"),
        FeatEntry("Tough", category="character"),
    ]
    build.resources.health_points = 30
    build.resources.energy_points = 24
    return build


def _render_text(engine: SheetEngine) -> str:
    build = engine.state
    stats = engine.stats()
    lines = [
        f"=== {build.name} (level {build.level}, {build.archetype.type}) ===",
        "",
        "--- Abilities ---",
    ]
    for ab in Ability:
        lines.append(f"  {ABILITY_NAMES[ab]:14s} {stats.abilities[ab]:>3d}")

    lines += ["", "--- Defenses ---"]
    for d in Defense:
        lines.append(
            f"  {DEFENSE_NAMES[d]:17s} {stats.defense_scores[d]:>3d}"
            f"  (bonus {stats.defense_bonuses[d]:+d})"
        )

    lines += ["", "--- Attacks ---"]
    for track, bonus in stats.attack_bonuses.items():
        lines.append(f"  {track:14s} {bonus.proficient:+d}  (unproficient {bonus.unproficient:+d})")
    lines.append(f"  Power potency  {stats.power_potency}")

    lines += [
        "",
        "--- Combat ---",
        f"  Speed          {stats.speed}",
        f"  Evasion        {stats.evasion}",
        f"  Health         {stats.current_health}/{stats.max_health}  (terminal {stats.terminal})",
        f"  Energy         {stats.current_energy}/{stats.max_energy}",
        "",
        "--- Budgets ---",
    ]
    for line in engine.budgets().values():
        flag = "  OVER" if line.over_budget else ""
        lines.append(f"  {line.name:16s} {line.spent:g}/{line.total:g}  (remaining {line.remaining:g}){flag}")

    issues = engine.validate()
    lines += ["", "--- Issues ---"]
    if not issues:
        lines.append("  none")
    for issue in issues:
        lines.append(f"  [{issue.severity}] {issue.category}: {issue.message}")
    return "\n".join(lines)


def main() -> None:
    parser = argparse.ArgumentParser(description="Dump derived stats for a character build")
    char_group = parser.add_mutually_exclusive_group(required=False)
    char_group.add_argument("--character-file", type=Path, help="Path to a stored character JSON record.")
    char_group.add_argument("--character-json", type=str, help="Inline character JSON object.")

    rules_group = parser.add_mutually_exclusive_group(required=False)
    rules_group.add_argument("--rules-file", type=Path, help="Path to a core-rules JSON object.")
    rules_group.add_argument("--rules-json", type=str, help="Inline core-rules JSON object.")

    parser.add_argument("--feats-file", type=Path, help="Codex feat table (list or id -> record).")
    parser.add_argument("--skills-file", type=Path, help="Codex skill table (list or id -> record).")
    parser.add_argument("--json", action="store_true", help="Emit machine-readable JSON output.")
    parser.add_argument("--verbose", action="store_true", help="Log engine decisions to stderr.")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    rules_payload = _load_object_arg(args.rules_json, args.rules_file)
    rules = CoreRules.from_mapping(rules_payload) if rules_payload else CoreRules.defaults()

    feats_raw = _load_json_arg(None, args.feats_file)
    skills_raw = _load_json_arg(None, args.skills_file)
    catalog = catalog_from_records(feats_raw, skills_raw) if feats_raw or skills_raw else Catalog()

    record = _load_object_arg(args.character_json, args.character_file)
    build = build_from_record(record, catalog) if record else sample_build()
    engine = SheetEngine.from_state(build, rules, catalog)

    if args.json:
        payload = {
            "state": asdict(engine.state),
            "stats": asdict(engine.stats()),
            "budgets": {
                name: {"total": line.total, "spent": line.spent, "remaining": line.remaining}
                for name, line in engine.budgets().items()
            },
            "issues": [asdict(issue) for issue in engine.validate()],
        }
        print(json.dumps(_json_safe(payload), indent=2))
        return

    print(_render_text(engine))


if __name__ == "__main__":
    main()
