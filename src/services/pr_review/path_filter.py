"""Glob rules deciding which changed files are reviewed."""

import fnmatch
from typing import Iterable, List, Optional, Tuple


class PathFilter:
    """
    Include/exclude rules, one glob per rule; ``!glob`` excludes.

    A path is kept when it matches no exclusion rule and either matches an
    inclusion rule or no inclusion rule exists at all.
    """

    def __init__(self, rules: Optional[Iterable[str]] = None):
        self.rules: List[Tuple[str, bool]] = []
        for rule in rules or []:
            trimmed = rule.strip()
            if not trimmed:
                continue
            if trimmed.startswith("!"):
                self.rules.append((trimmed[1:].strip(), True))
            else:
                self.rules.append((trimmed, False))

    def check(self, path: str) -> bool:
        if not self.rules:
            return True

        included = False
        excluded = False
        inclusion_rule_exists = False

        for pattern, exclude in self.rules:
            if _matches(path, pattern):
                if exclude:
                    excluded = True
                else:
                    included = True
            if not exclude:
                inclusion_rule_exists = True

        return (not inclusion_rule_exists or included) and not excluded


def _matches(path: str, pattern: str) -> bool:
    if fnmatch.fnmatchcase(path, pattern):
        return True
    # "**/x" also matches x at the repository root
    return pattern.startswith("**/") and fnmatch.fnmatchcase(path, pattern[3:])
