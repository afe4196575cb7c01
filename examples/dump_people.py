#!/usr/bin/env python3
"""
Example: Dump the members of an account.

Lists every person in the configured account with their ID, initials,
username and name.

Requirements:
- TRACKER_API_TOKEN set to a Pivotal Tracker API token
- TRACKER_ACCOUNT_ID set to the account to list (or pass --account-id)

Usage:
    python dump_people.py --account-id 12345
"""

import argparse
import logging
import sys

from pivotal_client import ClientConfig, PivotalClient, TrackerError


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def dump_people(client: PivotalClient, account_id=None) -> int:
    """Print one line per account member and return the member count."""
    memberships = client.account_memberships.list(account_id)
    for membership in memberships:
        person = membership.person
        print(f"[{person.id}] {person.initials or '':>3} {person.username or '':>20} {person.name}")
    return len(memberships)


def main():
    parser = argparse.ArgumentParser(description="List the people of a Pivotal Tracker account")
    parser.add_argument(
        "--account-id",
        type=int,
        help="Account ID (default: TRACKER_ACCOUNT_ID)"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log every HTTP request"
    )

    args = parser.parse_args()

    try:
        config = ClientConfig.from_env(debug=args.verbose)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(2)

    with PivotalClient(config) as client:
        try:
            count = dump_people(client, args.account_id)
        except (TrackerError, ValueError) as e:
            logger.error(f"Could not list account members: {e}")
            sys.exit(1)

    logger.info(f"Listed {count} account member(s)")


if __name__ == "__main__":
    main()
