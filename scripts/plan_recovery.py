"""Plan a rest: split partial-recovery quarters and reset limited-use feats.

Usage examples:
    python -m scripts.plan_recovery --request-json '{"health":{"current":20,"maximum":40},"energy":{"current":10,"maximum":20}}'
    python -m scripts.plan_recovery --request-json '{"health":[20,40],"energy":[10,20],"hours":6}' --json
    python -m scripts.plan_recovery --character-file hero.json --request-json '{"mode":"full"}'
    python -m scripts.plan_recovery --character-file hero.json \\
        --request-json '{"allocation":"manual","health_quarters":1}'

With --character-*, pools and feats come from the stored character and the
request only overrides mode/hours/allocation; without it the request must
carry both pools.
"""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any

from realms_sheet.engine.sheet_engine import SheetEngine
from realms_sheet.models.constants import RECOVERY_FULL, RECOVERY_PARTIAL
from realms_sheet.models.core_rules import CoreRules
from realms_sheet.optimizer import Pool, RecoveryRequest, RecoveryResult, recover
from realms_sheet.optimizer.specs import ALLOCATION_AUTOMATIC
from realms_sheet.parser.record_parser import build_from_record


def _load_json_arg(raw_json: str | None, file_path: Path | None) -> dict[str, Any]:
    if raw_json is not None:
        payload = json.loads(raw_json)
    elif file_path is not None:
        payload = json.loads(file_path.read_text())
    else:
        return {}
    if not isinstance(payload, dict):
        raise ValueError("JSON payload must be an object")
    return payload


def _json_safe(value: Any) -> Any:
    """Recursively normalize values for JSON serialization."""
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


def _parse_int_like(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("bool is not a valid integer value")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value.strip(), 0)
    raise ValueError(f"Expected integer-like value, got: {value!r}")


def _pool_from_value(value: Any) -> Pool:
    """Accept {"current": c, "maximum": m} (or "max") or a [current, maximum] pair."""
    if isinstance(value, dict):
        maximum = value.get("maximum", value.get("max"))
        if maximum is None:
            raise ValueError(f"Pool is missing a maximum: {value!r}")
        current = value.get("current", maximum)
        return Pool(_parse_int_like(current), _parse_int_like(maximum))
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return Pool(_parse_int_like(value[0]), _parse_int_like(value[1]))
    raise ValueError(f"Expected a pool object or [current, maximum] pair, got: {value!r}")


def _request_from_dict(data: dict[str, Any], base: RecoveryRequest | None = None) -> RecoveryRequest:
    """Build a RecoveryRequest, filling anything missing from *base*."""
    if base is None and ("health" not in data or "energy" not in data):
        raise ValueError("Request needs both health and energy pools without a character")

    health = _pool_from_value(data["health"]) if "health" in data else base.health
    energy = _pool_from_value(data["energy"]) if "energy" in data else base.energy
    mode = str(data.get("mode", base.mode if base else RECOVERY_PARTIAL)).strip().lower()
    if mode not in (RECOVERY_FULL, RECOVERY_PARTIAL):
        raise ValueError(f"Unknown recovery mode: {mode!r}")
    hours = _parse_int_like(data.get("hours", base.hours if base else 4))
    allocation = str(data.get("allocation", base.allocation if base else ALLOCATION_AUTOMATIC))
    health_quarters = data.get("health_quarters", base.health_quarters if base else None)
    return RecoveryRequest(
        health=health,
        energy=energy,
        mode=mode,
        hours=hours,
        allocation=allocation.strip().lower(),
        health_quarters=_parse_int_like(health_quarters) if health_quarters is not None else None,
    )


def _render_text_result(result: RecoveryResult) -> str:
    lines = [f"=== {result.mode.capitalize()} recovery ==="]
    if result.split is not None:
        lines.append(
            f"Quarters: {result.quarters}  (health {result.split.health}, energy {result.split.energy})"
        )
    lines += [
        f"Health: {result.health.current}/{result.health.maximum}  (+{result.health_restored})",
        f"Energy: {result.energy.current}/{result.energy.maximum}  (+{result.energy_restored})",
        f"Feats reset: {result.feats_reset}",
        f"Traits reset: {result.traits_reset}",
    ]
    limited = [f for f in result.feats + result.traits if f.max_uses is not None]
    if limited:
        lines.append("")
        lines.append("Limited-use entries:")
        for entry in limited:
            lines.append(
                f"  - {entry.name}: {entry.current_uses}/{entry.max_uses}"
                f"  ({entry.recovery_period or 'no recovery'})"
            )
    return "\n".join(lines)


def main() -> None:
    parser = argparse.ArgumentParser(description="Plan a full or partial recovery")
    request_group = parser.add_mutually_exclusive_group(required=False)
    request_group.add_argument("--request-file", type=Path, help="Path to a recovery request JSON file.")
    request_group.add_argument("--request-json", type=str, help="Inline recovery request JSON object.")

    char_group = parser.add_mutually_exclusive_group(required=False)
    char_group.add_argument("--character-file", type=Path, help="Path to a stored character JSON record.")
    char_group.add_argument("--character-json", type=str, help="Inline character JSON object.")

    rules_group = parser.add_mutually_exclusive_group(required=False)
    rules_group.add_argument("--rules-file", type=Path, help="Path to a core-rules JSON object.")
    rules_group.add_argument("--rules-json", type=str, help="Inline core-rules JSON object.")

    parser.add_argument("--json", action="store_true", help="Emit machine-readable JSON output.")
    parser.add_argument("--verbose", action="store_true", help="Log allocation decisions to stderr.")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    request_payload = _load_json_arg(args.request_json, args.request_file)
    character_payload = _load_json_arg(args.character_json, args.character_file)
    rules_payload = _load_json_arg(args.rules_json, args.rules_file)
    rules = CoreRules.from_mapping(rules_payload) if rules_payload else CoreRules.defaults()

    if character_payload:
        engine = SheetEngine.from_state(build_from_record(character_payload), rules)
        base = engine.recovery_request(RECOVERY_PARTIAL)
        result = engine.apply_recovery(_request_from_dict(request_payload, base))
    else:
        result = recover(_request_from_dict(request_payload))

    if args.json:
        print(json.dumps(_json_safe(asdict(result)), indent=2))
        return

    print(_render_text_result(result))


if __name__ == "__main__":
    main()
