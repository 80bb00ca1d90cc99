"""
Re-link goals to categories and routines to goals in the Turso database.

Connection settings come from TURSO_DATABASE_URL / TURSO_AUTH_TOKEN. The
mapping file is JSON:

    {
      "goal_categories": {"<goal title>": "<category id>"},
      "routine_goals": {"<routine title>": "<goal title>"}
    }

Usage:
    python scripts/repair_relationships.py mapping.json [--dry-run]
"""

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict

from app.libs.logging_config import configure_logging
from app.libs.turso_client import create_turso_client, rows_as_dicts

logger = logging.getLogger("repair_relationships")


def load_mapping(path: Path) -> Dict[str, Dict[str, str]]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Mapping file must contain a JSON object")
    return {
        "goal_categories": dict(data.get("goal_categories") or {}),
        "routine_goals": dict(data.get("routine_goals") or {}),
    }


async def show_current(client: Any) -> None:
    goals = rows_as_dicts(await client.execute("SELECT id, title, category_id FROM goals"))
    routines = rows_as_dicts(await client.execute("SELECT id, title, goal_id FROM routines"))
    print(f"Goals ({len(goals)}):")
    for goal in goals:
        print(f"  {goal['title']} -> category {goal['category_id']}")
    print(f"Routines ({len(routines)}):")
    for routine in routines:
        print(f"  {routine['title']} -> goal {routine['goal_id']}")


async def repair(client: Any, mapping: Dict[str, Dict[str, str]], dry_run: bool = False) -> Dict[str, int]:
    """
    Apply the mapping.

    Returns:
        Counts of updated goals and routines; routines whose goal title does
        not resolve are skipped.
    """
    counts = {"goals": 0, "routines": 0, "skipped": 0}

    if dry_run:
        print("Dry run: no changes will be written")
        print(json.dumps(mapping, indent=2, ensure_ascii=False))
        await show_current(client)
        return counts

    for goal_title, category_id in mapping["goal_categories"].items():
        result = await client.execute("UPDATE goals SET category_id = ? WHERE title = ?", [category_id, goal_title])
        print(f"Goal '{goal_title}' -> category {category_id}: {result.rows_affected} row(s)")
        counts["goals"] += result.rows_affected

    goal_ids: Dict[str, str] = {}
    for goal_title in set(mapping["routine_goals"].values()):
        rows = rows_as_dicts(await client.execute("SELECT id FROM goals WHERE title = ?", [goal_title]))
        if rows:
            goal_ids[goal_title] = rows[0]["id"]

    for routine_title, goal_title in mapping["routine_goals"].items():
        goal_id = goal_ids.get(goal_title)
        if goal_id is None:
            logger.warning("No goal titled '%s'; skipping routine '%s'", goal_title, routine_title)
            counts["skipped"] += 1
            continue
        result = await client.execute("UPDATE routines SET goal_id = ? WHERE title = ?", [goal_id, routine_title])
        print(f"Routine '{routine_title}' -> goal {goal_title}: {result.rows_affected} row(s)")
        counts["routines"] += result.rows_affected

    return counts


async def main(argv=None) -> Dict[str, int]:
    parser = argparse.ArgumentParser(description=__doc__.split("\n\n")[0].strip())
    parser.add_argument("mapping", type=Path, help="JSON file with goal_categories and routine_goals")
    parser.add_argument("--dry-run", action="store_true", help="Print the mapping and current rows only")
    args = parser.parse_args(argv)

    configure_logging()
    mapping = load_mapping(args.mapping)

    client = create_turso_client()
    try:
        counts = await repair(client, mapping, dry_run=args.dry_run)
    finally:
        await client.close()

    print(f"Done: {counts['goals']} goal(s), {counts['routines']} routine(s) updated, {counts['skipped']} skipped")
    return counts


if __name__ == "__main__":
    asyncio.run(main())
