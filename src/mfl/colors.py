"""Terminal colouring for MFL diagnostics and results."""

import os
import sys


def _terminal_supports_color() -> bool:
    return (
        hasattr(sys.stdout, 'isatty') and
        sys.stdout.isatty() and
        os.environ.get('TERM') != 'dumb' and
        os.environ.get('NO_COLOR') is None
    )


_CODES = {
    'RESET': '\033[0m',
    'BOLD': '\033[1m',
    'DIM': '\033[2m',
    'RED': '\033[31m',
    'GREEN': '\033[32m',
    'YELLOW': '\033[33m',
    'BLUE': '\033[34m',
    'MAGENTA': '\033[35m',
    'CYAN': '\033[36m',
    'BRIGHT_BLUE': '\033[94m',
}


class Colors:
    """ANSI escape codes; every code is the empty string when colour is off."""

    enabled = _terminal_supports_color()

    RESET = BOLD = DIM = ''
    RED = GREEN = YELLOW = BLUE = MAGENTA = CYAN = BRIGHT_BLUE = ''

    @classmethod
    def _wrap(cls, code: str, text: str) -> str:
        return f"{code}{text}{cls.RESET}"

    @classmethod
    def success(cls, text: str) -> str:
        return f"{cls.GREEN}✓{cls.RESET} {text}"

    @classmethod
    def error(cls, text: str) -> str:
        return f"{cls.RED}✗{cls.RESET} {text}"

    @classmethod
    def warning(cls, text: str) -> str:
        return f"{cls.YELLOW}⚠{cls.RESET} {text}"

    @classmethod
    def hint(cls, text: str) -> str:
        return cls._wrap(cls.BLUE, text)

    @classmethod
    def bold(cls, text: str) -> str:
        return cls._wrap(cls.BOLD, text)

    @classmethod
    def dim(cls, text: str) -> str:
        return cls._wrap(cls.DIM, text)

    @classmethod
    def keyword(cls, text: str) -> str:
        return cls._wrap(cls.MAGENTA, text)

    @classmethod
    def type_name(cls, text: str) -> str:
        return cls._wrap(cls.CYAN, text)

    @classmethod
    def var_name(cls, text: str) -> str:
        return cls._wrap(cls.YELLOW, text)

    @classmethod
    def value(cls, text: str) -> str:
        return cls._wrap(cls.GREEN, text)

    @classmethod
    def prompt(cls, text: str) -> str:
        return cls._wrap(cls.BRIGHT_BLUE, text)


def set_colors(enabled: bool) -> None:
    """Switch colour output on or off for the whole process."""
    Colors.enabled = enabled
    for name, code in _CODES.items():
        setattr(Colors, name, code if enabled else '')


def disable_colors() -> None:
    set_colors(False)


def enable_colors() -> None:
    set_colors(True)


set_colors(Colors.enabled)
