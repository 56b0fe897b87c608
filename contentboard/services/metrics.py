from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, Optional

from contentboard.clock import utcnow

RECENT_WINDOW = timedelta(days=30)


def top_platform(platform_types: Iterable[str]) -> str:
    """Most frequent platform type; equal counts resolve to the lexically first type."""
    counts = Counter(p for p in platform_types if p)
    if not counts:
        return "none"
    return min(counts.items(), key=lambda kv: (-kv[1], kv[0]))[0]


def compute_overview(posts, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Dashboard summary over a snapshot of stored posts. Pure read, no isolation guarantee."""
    now = now or utcnow()
    posts = list(posts)
    scores = [p.performance_score for p in posts if p.performance_score is not None]
    avg = sum(scores) / len(scores) if scores else 0
    cutoff = now - RECENT_WINDOW
    return {
        "totalPosts": len(posts),
        "avgPerformanceScore": round(avg, 2),
        "topPlatform": top_platform(p.platform_type for p in posts),
        "recentPosts": sum(1 for p in posts if p.created_at and p.created_at >= cutoff),
    }
