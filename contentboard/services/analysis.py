# contentboard/services/analysis.py
"""AI analysis of a synced post: prompt -> text generation -> JSON -> analysis columns."""
import json
from textwrap import dedent
from typing import Any, Callable, Dict, List, Optional

import structlog

from contentboard.config import settings
from contentboard.db.models import ContentPost
from contentboard.db.store import Store
from contentboard.errors import PostNotFound
from contentboard.services.hf_client import HFClient

logger = structlog.get_logger()

Generator = Callable[[str], str]

RESPONSE_SHAPE = '''{
  "performanceScore": number (0-100),
  "strengths": [string], "weaknesses": [string], "recommendations": [string],
  "contentStructure": {"hookEffectiveness": number, "storytellingStructure": string,
    "callToActionPresence": boolean, "emotionalTone": [string], "keyTopics": [string],
    "readabilityScore": number, "visualContentRatio": number},
  "trends": {"topPerformingElements": [string], "emergingPatterns": [string],
    "seasonalTrends": [string], "audiencePreferences": [string]}
}'''


def _truncate(text: str, max_chars: int = 3500) -> str:
    return (text or "")[:max_chars]


def format_metrics(metrics: Dict[str, Any]) -> str:
    m = metrics or {}
    return (
        f"Likes: {m.get('likes', 0)}, Comments: {m.get('comments', 0)}, "
        f"Shares: {m.get('shares', 0)}, Engagement: {float(m.get('engagementRate', 0)):.2f}%"
    )


def build_prompt(post: ContentPost) -> str:
    script = ""
    if post.script_content:
        script = f"ORIGINAL SCRIPT:\nTitle: {post.script_title or ''}\nContent: {_truncate(post.script_content, 1500)}\n"
    published = post.published_at.isoformat() if post.published_at else "unknown"
    return dedent(f'''
    Analyze this {post.platform_type} post for content performance.

    Title: {post.title}
    Content: {_truncate(post.content)}
    Published: {published}
    Media URLs: {len(post.media_urls or [])} items

    PERFORMANCE METRICS:
    {format_metrics(post.metrics)}
    ''').strip() + "\n" + script + f"\nReply with JSON only, in this shape:\n{RESPONSE_SHAPE}\n"


def _extract_json(text: str) -> Dict[str, Any]:
    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end <= start:
        raise ValueError("no JSON object in reply")
    data = json.loads(text[start:end + 1])
    if not isinstance(data, dict):
        raise ValueError("reply is not a JSON object")
    return data


def _clamp(value: Any, low: float = 0, high: float = 100) -> float:
    try:
        return max(low, min(high, float(value)))
    except (TypeError, ValueError):
        return low


def fallback_analysis(post: ContentPost) -> Dict[str, Any]:
    rate = float((post.metrics or {}).get("engagementRate", 0) or 0)
    return {
        "performance_score": _clamp(rate * 10),
        "strengths": ["Content published successfully"],
        "weaknesses": ["Analysis parsing failed"],
        "recommendations": ["Review content structure"],
        "content_structure": {
            "hookEffectiveness": 50,
            "storytellingStructure": "Unknown structure",
            "callToActionPresence": False,
            "emotionalTone": ["neutral"],
            "keyTopics": ["general"],
            "readabilityScore": 50,
            "visualContentRatio": 100 if post.media_urls else 0,
        },
        "trend_analysis": {
            "topPerformingElements": [],
            "emergingPatterns": [],
            "seasonalTrends": [],
            "audiencePreferences": [],
        },
    }


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    # a bare string would otherwise split into characters
    return list(value) if isinstance(value, list) else []


def parse_analysis(reply: str, post: ContentPost) -> Dict[str, Any]:
    try:
        data = _extract_json(reply)
    except ValueError as e:
        logger.warning("analysis_reply_unparseable", post_id=post.id, error=str(e))
        return fallback_analysis(post)

    structure = _as_dict(data.get("contentStructure"))
    trends = _as_dict(data.get("trends"))
    return {
        "performance_score": _clamp(data.get("performanceScore", 0)),
        "strengths": _as_list(data.get("strengths")),
        "weaknesses": _as_list(data.get("weaknesses")),
        "recommendations": _as_list(data.get("recommendations")),
        "content_structure": {
            "hookEffectiveness": _clamp(structure.get("hookEffectiveness", 0)),
            "storytellingStructure": str(structure.get("storytellingStructure") or ""),
            "callToActionPresence": bool(structure.get("callToActionPresence", False)),
            "emotionalTone": _as_list(structure.get("emotionalTone")),
            "keyTopics": _as_list(structure.get("keyTopics")),
            "readabilityScore": _clamp(structure.get("readabilityScore", 0)),
            "visualContentRatio": _clamp(structure.get("visualContentRatio", 0)),
        },
        "trend_analysis": {
            "topPerformingElements": _as_list(trends.get("topPerformingElements")),
            "emergingPatterns": _as_list(trends.get("emergingPatterns")),
            "seasonalTrends": _as_list(trends.get("seasonalTrends")),
            "audiencePreferences": _as_list(trends.get("audiencePreferences")),
        },
    }


_hf: Optional[HFClient] = None


def default_generator() -> Generator:
    # one client (and one connection pool) per process
    global _hf
    if _hf is None:
        _hf = HFClient()
    hf = _hf
    params = {"max_new_tokens": 800, "temperature": 0.3, "return_full_text": False}
    return lambda prompt: hf.text_generation(settings.analysis_model, prompt, params=params)


def analyze_post(store: Store, post_id: int, generate: Optional[Generator] = None) -> ContentPost:
    post = store.get_content_post(post_id)
    if not post:
        raise PostNotFound(post_id)
    generate = generate or default_generator()
    reply = generate(build_prompt(post))
    analysis = parse_analysis(reply, post)
    logger.info("post_analyzed", post_id=post.id, score=analysis["performance_score"])
    return store.save_analysis(post, analysis)
