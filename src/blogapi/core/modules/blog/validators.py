import re

from blogapi.errors import ValidationError

TAG_RE = re.compile(r"^[A-Za-z0-9]{2,20}$")
TITLE_MIN_LENGTH = 5
TITLE_MAX_LENGTH = 255
CONTENT_MIN_LENGTH = 20
COMMENT_MAX_LENGTH = 2000


def validate_title(title: str) -> None:
    if not TITLE_MIN_LENGTH <= len(title.strip()) <= TITLE_MAX_LENGTH:
        raise ValidationError(f"Title must be between {TITLE_MIN_LENGTH} and {TITLE_MAX_LENGTH} characters long")


def validate_content(content: str) -> None:
    if len(content.strip()) < CONTENT_MIN_LENGTH:
        raise ValidationError(f"Content must be at least {CONTENT_MIN_LENGTH} characters long")


def validate_tags(tags: list[str]) -> list[str]:
    """Validate tags and return them without duplicates, preserving order.

    Raises:
        ValidationError: If a tag is not 2-20 alphanumeric characters
    """
    for tag in tags:
        if not TAG_RE.fullmatch(tag):
            raise ValidationError(f"Invalid tag '{tag}': tags must be 2-20 alphanumeric characters")
    return list(dict.fromkeys(tags))


def validate_comment(content: str) -> None:
    if not 1 <= len(content.strip()) <= COMMENT_MAX_LENGTH:
        raise ValidationError(f"Comment must be between 1 and {COMMENT_MAX_LENGTH} characters long")
