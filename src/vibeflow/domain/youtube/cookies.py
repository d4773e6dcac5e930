"""Netscape cookies.txt storage for signed-in YouTube extraction."""

from pathlib import Path

from loguru import logger


def is_valid_cookies(content: str) -> bool:
    """A usable export is tab-separated and mentions youtube.com."""
    return "\t" in content and "youtube.com" in content


def has_cookies(path: Path) -> bool:
    if not path.exists():
        return False
    try:
        return is_valid_cookies(path.read_text(encoding="utf-8"))
    except OSError as e:
        logger.warning(f"Could not read cookies file {path}: {e}")
        return False


def save_cookies(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    path.chmod(0o600)
    logger.info(f"Saved YouTube cookies to {path}")


def delete_cookies(path: Path) -> None:
    if path.exists():
        path.unlink()
        logger.info(f"Deleted YouTube cookies at {path}")
