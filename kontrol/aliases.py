"""Group alias file loader.

Alias files map group tokens to the names shown in the status line:

    # token = display name
    s1 = Drums
    s2 = Bass
    m1 = FX Returns
"""

from pathlib import Path
from typing import Dict, Optional

from kontrol.log import get_logger

logger = get_logger("aliases")


class AliasFileError(ValueError):
    """Malformed line in an alias file (strict mode only)."""

    def __init__(self, path: str, line_number: int, line: str):
        self.path = path
        self.line_number = line_number
        self.line = line
        super().__init__(f"{path}:{line_number}: expected 'token = name', got {line!r}")


def parse_alias_line(line: str) -> Optional[tuple]:
    """Parse one alias line.

    Returns:
        (token, name) tuple, or None for blank and comment lines

    Raises:
        ValueError: If the line has no '=' or an empty token
    """
    stripped = line.strip()
    if not stripped or stripped.startswith('#'):
        return None

    if '=' not in stripped:
        raise ValueError(f"missing '=' in {line!r}")

    token, name = stripped.split('=', 1)
    token = token.strip()
    if not token:
        raise ValueError(f"empty token in {line!r}")

    return token, name.strip()


def load_aliases(path: Optional[str], strict: bool = False) -> Dict[str, str]:
    """Load group aliases from a file.

    Args:
        path: Alias file path, or None for no aliases
        strict: Raise on malformed lines instead of skipping them

    Returns:
        Dict of group token → display name (empty if path is None or missing)

    Raises:
        AliasFileError: On a malformed line when strict is True
        OSError: If the file exists but can't be read
    """
    if not path:
        return {}

    alias_path = Path(path)
    if not alias_path.exists():
        logger.warning(f"Alias file not found: {path} (continuing without aliases)")
        return {}

    aliases = {}
    with open(alias_path, 'rb') as f:
        for line_number, raw in enumerate(f, start=1):
            # Lines are decoded one at a time so a bad byte only costs its own line
            try:
                parsed = parse_alias_line(raw.decode('utf-8'))
            except ValueError:
                line = raw.decode('utf-8', errors='replace').rstrip('\r\n')
                if strict:
                    raise AliasFileError(str(path), line_number, line)
                logger.warning(f"Skipping malformed alias at {path}:{line_number}: {line!r}")
                continue

            if parsed is None:
                continue

            token, name = parsed
            aliases[token] = name

    logger.info(f"Loaded {len(aliases)} group aliases from {path}")
    return aliases
