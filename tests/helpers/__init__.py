from .mocks import FakeTransport, Call, json_response
from .factories import mk_story, mk_comment, mk_review, mk_stories

__all__ = [
    "FakeTransport",
    "Call",
    "json_response",
    "mk_story",
    "mk_comment",
    "mk_review",
    "mk_stories",
]
