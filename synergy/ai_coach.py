"""
AI coach: motivational quotes, journal prompts and physique analysis.

Every call degrades to deterministic content when no API key is configured,
the service errors, or the model returns something unparsable.
"""
import json
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Dict, List

import google.generativeai as genai
from dotenv import load_dotenv

from synergy.ml_logic import get_motivational_message

load_dotenv()

logger = logging.getLogger(__name__)

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
GEMINI_MODEL_ID = os.getenv("GEMINI_MODEL_ID", "gemini-2.5-flash-lite")

DEFAULT_JOURNAL_PROMPT = "What is one thing you are grateful for today?"

_model = None
if GEMINI_API_KEY:
    try:
        genai.configure(api_key=GEMINI_API_KEY)
        _model = genai.GenerativeModel(GEMINI_MODEL_ID)
    except Exception:
        logger.exception("Could not initialise Gemini model %s", GEMINI_MODEL_ID)
        _model = None

MOTIVATION_PROMPT = """You are a world-class motivational coach.
Generate a short, powerful, and inspiring quote for someone working on self-improvement and building better habits.
The quote should be encouraging and focus on progress, not perfection.
Keep the quote to a single sentence.
Return ONLY valid JSON with keys: title (a short, catchy title), quote."""

JOURNAL_PROMPT = """You are a helpful assistant that provides insightful and thought-provoking journal prompts for self-reflection.
Generate a single, concise journal prompt. It should encourage deep thought but be approachable.
Do not add any preamble, just return the prompt itself."""

PHYSIQUE_PROMPT = """You are a personal trainer analyzing the physical progress of a user from their photos.
{comparison}
Notes from the user: {notes}
{body_fat}
Return ONLY valid JSON with keys:
overall_physique (string), muscle_groups (object mapping muscle group to a short assessment),
improvement_areas (list of strings), recommendations (string with workout and diet advice)."""


@dataclass
class Motivation:
    title: str
    quote: str


@dataclass
class PhysiqueAnalysis:
    overall_physique: str
    muscle_groups: Dict[str, str] = field(default_factory=dict)
    improvement_areas: List[str] = field(default_factory=list)
    recommendations: str = ""


def _gemini_generate(content):
    if not _model:
        return None
    try:
        return _model.generate_content(content)
    except Exception:
        logger.exception("Gemini request failed")
        return None


def _response_text(res):
    try:
        return (getattr(res, "text", "") or "").strip() if res else ""
    except ValueError:
        # .text raises when the response was blocked
        return ""


def _parse_json_from_text(text):
    if not text:
        return {}
    text = text.strip()
    m = re.search(r"```(?:json)?\s*([\s\S]*?)```", text)
    if m:
        text = m.group(1).strip()
    try:
        return json.loads(text)
    except ValueError:
        start = text.find("{")
        end = text.rfind("}")
        if start != -1 and end != -1 and end > start:
            try:
                return json.loads(text[start : end + 1])
            except ValueError:
                return {}
    return {}


def generate_motivation(streak=0):
    """Return a Motivation; falls back to the offline message pool."""
    parsed = _parse_json_from_text(_response_text(_gemini_generate(MOTIVATION_PROMPT)))
    if isinstance(parsed, dict) and parsed.get("quote"):
        return Motivation(title=str(parsed.get("title") or "Keep Going"), quote=str(parsed["quote"]))
    title, quote = get_motivational_message(streak)
    return Motivation(title=title, quote=quote)


def generate_journal_prompt():
    text = _response_text(_gemini_generate(JOURNAL_PROMPT))
    if not text:
        logger.info("Journal prompt generation returned nothing, using the default prompt")
        return DEFAULT_JOURNAL_PROMPT
    return text.strip().strip('"')


def analyze_physical_progress(photo, mime_type="image/jpeg", previous_photo=None,
                              previous_mime_type="image/jpeg", notes="", body_fat=None):
    """
    Compare the current photo (bytes) with an optional previous one.
    Returns a PhysiqueAnalysis.
    """
    if previous_photo:
        comparison = ("Compare the current photo (first image) with the previous photo (second image) "
                      "and describe changes such as muscle gains or losses.")
    else:
        comparison = "This is the first photo. Focus on describing the user's current physique."
    body_fat_line = f"Reported body fat: {body_fat}%" if body_fat is not None else ""

    content = [
        PHYSIQUE_PROMPT.format(comparison=comparison, notes=notes or "none", body_fat=body_fat_line),
        {"mime_type": mime_type, "data": photo},
    ]
    if previous_photo:
        content.append({"mime_type": previous_mime_type, "data": previous_photo})

    parsed = _parse_json_from_text(_response_text(_gemini_generate(content)))
    if not isinstance(parsed, dict) or not parsed.get("overall_physique"):
        return PhysiqueAnalysis(
            overall_physique="Analysis is unavailable right now. Please try again later.",
        )

    muscle_groups = parsed.get("muscle_groups") or {}
    areas = parsed.get("improvement_areas") or []
    return PhysiqueAnalysis(
        overall_physique=str(parsed["overall_physique"]),
        muscle_groups={str(k): str(v) for k, v in muscle_groups.items()} if isinstance(muscle_groups, dict) else {},
        improvement_areas=[str(a) for a in areas] if isinstance(areas, list) else [str(areas)],
        recommendations=str(parsed.get("recommendations") or ""),
    )
