import random
from typing import Dict, List, Optional, Sequence


ALL_COLORS = ('red', 'blue', 'green', 'yellow', 'orange', 'purple', 'pink', 'cyan', 'indigo')
PLACEHOLDER_COLOR = 'gray'

# Visually similar colors share a bucket; adjacent tiles avoid sharing one.
CATEGORIES: Dict[str, str] = {
    'red': 'warm_red',
    'pink': 'warm_red',
    'orange': 'warm_yellow',
    'yellow': 'warm_yellow',
    'green': 'green',
    'blue': 'blue',
    'cyan': 'blue',
    'purple': 'purple',
    'indigo': 'purple',
}


def select_palette(all_colors: Sequence[str], distinct_count: int,
                   rng: Optional[random.Random] = None,
                   spread_categories: bool = False) -> List[str]:
    """Draw a random subset of ``distinct_count`` colors without repetition.

    With ``spread_categories`` the draw takes at most one color per
    category while unused categories remain, so the palette spans as
    many buckets as it can.
    """
    rng = rng or random
    count = max(0, min(distinct_count, len(all_colors)))
    if not spread_categories:
        return rng.sample(list(all_colors), count)

    buckets: Dict[str, List[str]] = {}
    for color in all_colors:
        buckets.setdefault(color_category(color), []).append(color)
    picked = [rng.choice(buckets[name]) for name in rng.sample(list(buckets), min(count, len(buckets)))]
    if len(picked) < count:
        leftover = [c for c in all_colors if c not in picked]
        picked.extend(rng.sample(leftover, count - len(picked)))
    return picked


def color_category(color: str) -> str:
    # Colors outside the table are their own bucket
    return CATEGORIES.get(color, color)
