#!/usr/bin/env python3
"""
Example: Print a digest of the stories in a project.

Demonstrates both halves of the client:
1. A lazy cursor over the stories matching a filter
2. One aggregation that fetches the comments and reviews of all of them
   in a handful of bulk calls instead of two requests per story

Requirements:
- TRACKER_API_TOKEN set to a Pivotal Tracker API token

Usage:
    python story_digest.py 99 --filter "state:started" --limit 30
"""

import argparse
import logging
import sys
from itertools import islice

from pivotal_client import Correlation, PivotalClient, TrackerError


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def build_digest(client: PivotalClient, project_id: int, filter=None, limit=20, page_size=None):
    """
    Collect stories with their comments and reviews.

    Returns:
        List of (story, comments, reviews) tuples in server order
    """
    cursor = client.stories.iterate(project_id, filter=filter, page_size=page_size)
    logger.info(f"Project {project_id} has {cursor.total} matching stories")

    stories = list(islice(cursor, limit))
    story_ids = [story.id for story in stories]

    aggregation = client.aggregator.builder(correlation=Correlation.STORY_ID)
    aggregation.comments_of_stories(project_id, story_ids)
    aggregation.reviews_of_stories(project_id, story_ids)
    calls = aggregation.dispatch()
    logger.info(f"Fetched comments and reviews of {len(story_ids)} stories in {calls} call(s)")

    digest = []
    for story in stories:
        try:
            comments = aggregation.get_comments(project_id, story.id)
            reviews = aggregation.get_reviews(project_id, story.id)
        except TrackerError as e:
            logger.warning(f"Story {story.id}: {e}")
            comments, reviews = [], []
        digest.append((story, comments, reviews))
    return digest


def print_digest(digest):
    for story, comments, reviews in digest:
        pending = sum(1 for review in reviews if review.status != "pass")
        print(f"#{story.id} [{story.current_state}] {story.name}")
        print(f"    {len(comments)} comment(s), {len(reviews)} review(s), {pending} not passed")


def main():
    parser = argparse.ArgumentParser(description="Story digest for a Pivotal Tracker project")
    parser.add_argument(
        "project_id",
        type=int,
        help="Project ID"
    )
    parser.add_argument(
        "--filter",
        help="Tracker search filter, e.g. 'state:started'"
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=20,
        help="Maximum number of stories to include"
    )
    parser.add_argument(
        "--page-size",
        type=int,
        help="Stories fetched per page"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log every HTTP request"
    )

    args = parser.parse_args()

    try:
        client = PivotalClient.from_env(debug=args.verbose)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(2)

    with client:
        try:
            digest = build_digest(client, args.project_id, args.filter, args.limit, args.page_size)
        except TrackerError as e:
            logger.error(f"Fatal error: {e}")
            sys.exit(1)

    print_digest(digest)


if __name__ == "__main__":
    main()
