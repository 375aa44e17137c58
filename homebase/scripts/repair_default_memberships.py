"""
Repair Default Memberships Script
Restores the one-default-per-profile invariant on family_members.
Can be run manually or as part of a nightly job.

A profile with memberships but no default gets its oldest membership promoted.
A profile with several defaults keeps the oldest one; the others are demoted.
"""

import argparse
import sys
from collections import defaultdict
from pathlib import Path
from typing import Dict, List

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from homebase.database.store import Store, SupabaseStore
from homebase.database.supabase_client import get_service_supabase
from homebase.modules.families.schemas import Membership
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def group_by_profile(memberships: List[Membership]) -> Dict[str, List[Membership]]:
    grouped = defaultdict(list)
    for membership in memberships:
        grouped[membership.profile_id].append(membership)
    return grouped


def repair_default_memberships(store: Store, dry_run: bool = False) -> Dict[str, int]:
    """Scan every membership and fix profiles with zero or several defaults"""
    memberships = store.get_by_filter(Membership, order_by=[("created_at", False)])
    promoted = 0
    demoted = 0

    for profile_id, owned in group_by_profile(memberships).items():
        defaults = [m for m in owned if m.is_default]
        if len(defaults) == 1:
            continue

        if not defaults:
            keep = owned[0]
            logger.info(f"Profile {profile_id}: promoting membership {keep.id} (family {keep.family_id})")
            if not dry_run:
                store.update(Membership, keep.id, {"is_default": True}, expect={"is_default": False})
            promoted += 1
            continue

        # Demote before anything else so the partial unique index never sees two defaults
        for extra in defaults[1:]:
            logger.info(f"Profile {profile_id}: demoting membership {extra.id} (family {extra.family_id})")
            if not dry_run:
                store.update(Membership, extra.id, {"is_default": False})
            demoted += 1

    return {"profiles": len(group_by_profile(memberships)), "promoted": promoted, "demoted": demoted}


def main(argv=None):
    """Main function to repair default memberships"""
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--dry-run", action="store_true", help="report changes without writing")
    args = parser.parse_args(argv)

    try:
        store = SupabaseStore(get_service_supabase())

        logger.info("Starting default membership repair...")
        summary = repair_default_memberships(store, dry_run=args.dry_run)

        mode = " (dry run)" if args.dry_run else ""
        logger.info(
            f"Repair completed{mode}: {summary['profiles']} profiles scanned, "
            f"{summary['promoted']} promoted, {summary['demoted']} demoted"
        )
    except Exception as e:
        logger.error(f"Error during repair: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
