from typing import Iterable, Optional

SUGGEST_THRESHOLD = 3


def levenshtein(s1: str, s2: str) -> int:
    """Edit distance counting single-character inserts, deletes and substitutions"""
    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, 1):
        current = [i]
        for j, c2 in enumerate(s2, 1):
            cost = 0 if c1 == c2 else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def suggest_command(user_command: str, commands: Iterable[str],
                    threshold: int = SUGGEST_THRESHOLD) -> Optional[str]:
    """Closest known command within threshold, first one wins on ties"""
    best = None
    best_dist = threshold + 1
    for command in commands:
        dist = levenshtein(user_command, command)
        if dist < best_dist:
            best, best_dist = command, dist
    return best
