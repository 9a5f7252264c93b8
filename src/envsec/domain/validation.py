"""Secret name and argument validation shared by every store."""

import os
import re
from typing import Dict, Iterable, List

from .errors import ValidationError

NAME_REGEX_STR = "^[a-zA-Z_][a-zA-Z0-9_]*"
RESERVED_PREFIX = "jetpack_"

_NAME_RE = re.compile(NAME_REGEX_STR)


def ensure_valid_names(names: Iterable[str]) -> None:
    """Raise ValidationError for the first invalid secret name."""
    for name in names:
        # Any variation of jetpack_ or JETPACK_ is reserved
        if name.lower().startswith(RESERVED_PREFIX):
            raise ValidationError(f"name {name} cannot start with JETPACK_ (or lowercase)")
        if not _NAME_RE.match(name):
            raise ValidationError(f"name {name} must match the regular expression: {NAME_REGEX_STR}")


def validate_set_args(args: Iterable[str]) -> None:
    """Check that every argument has the form NAME=VALUE."""
    for arg in args:
        key, sep, _ = arg.partition("=")
        if not sep or not key:
            raise ValidationError(f"argument {arg} must have an '=' to be of the form NAME=VALUE")


def parse_set_args(args: List[str]) -> Dict[str, str]:
    """Parse NAME=VALUE arguments into a mapping.

    A value of the form ``@path`` is read from that file. A leading ``\\@``
    escapes the ``@`` and is stored literally.
    """
    validate_set_args(args)
    env_map: Dict[str, str] = {}
    for arg in args:
        key, _, val = arg.partition("=")
        if val.startswith("\\@"):
            val = val[1:]
        elif val.startswith("@"):
            path = val[1:]
            if not os.path.exists(path):
                raise ValidationError(
                    f"@ syntax is used for setting a secret from a file. file {path} "
                    f"does not exist. If your value starts with @, escape it with "
                    f"a backslash, e.g. {key}='\\{val}'"
                )
            with open(path, encoding="utf-8") as f:
                val = f.read()
        env_map[key] = val
    return env_map
