"""
Project and service recommendations.

Two flavours:
- skill matching: a freelancer's skills against open projects' requirements,
  category and title
- AI ranking: Gemini scores the candidates; when Gemini is not configured or
  its reply is unusable a keyword heuristic produces the same shape
"""

import json
import logging

from database import get_documents, serialize_doc
from integrations import gemini
from responses import ExternalServiceError
from schemas import PROJECT, SERVICE

logger = logging.getLogger(__name__)

MAX_CANDIDATES = 50
MAX_RESULTS = 10


def _lower(values) -> list:
    return [str(v).strip().lower() for v in values or [] if str(v).strip()]


def _keywords(values) -> list:
    seen = []
    for v in _lower(values):
        if v not in seen:
            seen.append(v)
    return seen


# ---------- Skill matching ----------
def matched_skills(skills, project: dict) -> list:
    fields = _lower(project.get("requirements")) + _lower([project.get("category", ""), project.get("title", "")])
    return [s for s in _keywords(skills) if any(s in f for f in fields)]


def recommend_projects_by_skills(user: dict) -> list:
    skills = user.get("skills") or []
    if not skills:
        return []
    ranked = []
    for project in get_documents(PROJECT, {"status": "open"}):
        matches = matched_skills(skills, project)
        if matches:
            doc = serialize_doc(project)
            doc["matched_skills"] = matches
            ranked.append(doc)
    ranked.sort(key=lambda p: len(p["matched_skills"]), reverse=True)
    return ranked


# ---------- Prompts ----------
def project_prompt(user: dict, projects: list) -> str:
    candidates = [
        {
            "project_id": str(p["_id"]),
            "title": p.get("title", ""),
            "category": p.get("category", ""),
            "budget": p.get("budget", 0),
            "requirements": p.get("requirements", []),
        }
        for p in projects
    ]
    return (
        "You match freelancers with projects on a freelance marketplace.\n"
        f"Freelancer skills: {', '.join(user.get('skills') or []) or '-'}\n"
        f"Hourly rate (IDR): {user.get('hourly_rate', 0)}\n"
        f"About: {user.get('about') or '-'}\n\n"
        f"Projects:\n{json.dumps(candidates, default=str)}\n\n"
        "Reply with only a JSON array, no explanation, in the form "
        '[{"project_id": "<id>", "match_percentage": <0-100>}], best match first.'
    )


def service_prompt(user: dict, own_projects: list, services: list) -> str:
    needs = [
        {
            "title": p.get("title", ""),
            "category": p.get("category", ""),
            "requirements": p.get("requirements", []),
            "budget": p.get("budget", 0),
        }
        for p in own_projects
    ]
    candidates = [
        {
            "service_id": str(s["_id"]),
            "title": s.get("title", ""),
            "category": s.get("category", ""),
            "price": s.get("price", 0),
            "includes": s.get("includes", []),
        }
        for s in services
    ]
    return (
        "You match clients with freelancer services on a freelance marketplace.\n"
        f"Client company: {user.get('company_name') or '-'}, industry: {user.get('industry') or '-'}\n"
        f"Client projects:\n{json.dumps(needs, default=str)}\n\n"
        f"Services:\n{json.dumps(candidates, default=str)}\n\n"
        "Reply with only a JSON array, no explanation, in the form "
        '[{"service_id": "<id>", "match_percentage": <0-100>}], best match first.'
    )


# ---------- Ranking ----------
def clamp_percentage(value) -> float:
    try:
        pct = float(value)
    except (TypeError, ValueError):
        return 0.0
    return max(0.0, min(100.0, pct))


def rank_reply(reply, candidates: list, id_field: str) -> list:
    """Turn a Gemini reply into [(candidate, percentage)] for known candidates only."""
    if isinstance(reply, dict):
        reply = reply.get("recommendations", reply.get("data"))
    if not isinstance(reply, list):
        raise ExternalServiceError("gemini", "AI reply is not a list of recommendations")

    by_id = {str(c["_id"]): c for c in candidates}
    ranked = []
    seen = set()
    for item in reply:
        if not isinstance(item, dict):
            continue
        key = str(item.get(id_field, ""))
        if key not in by_id or key in seen:
            continue
        seen.add(key)
        ranked.append((by_id[key], clamp_percentage(item.get("match_percentage"))))
    ranked.sort(key=lambda r: r[1], reverse=True)
    return ranked


def keyword_ranking(keywords, candidates: list, text_of) -> list:
    keywords = _keywords(keywords)
    if not keywords:
        return []
    ranked = []
    for c in candidates:
        text = text_of(c).lower()
        hits = sum(1 for k in keywords if k in text)
        if hits:
            ranked.append((c, round(hits * 100.0 / len(keywords), 1)))
    ranked.sort(key=lambda r: r[1], reverse=True)
    return ranked


def project_text(project: dict) -> str:
    return " ".join(
        [project.get("title", ""), project.get("description", ""), project.get("category", "")]
        + list(project.get("requirements") or [])
    )


def service_text(service: dict) -> str:
    return " ".join(
        [service.get("title", ""), service.get("description", ""), service.get("category", "")]
        + list(service.get("includes") or [])
    )


def _ai_or_fallback(prompt: str, candidates: list, id_field: str, keywords, text_of) -> list:
    if gemini.is_configured():
        try:
            return rank_reply(gemini.generate_json(prompt), candidates, id_field)
        except ExternalServiceError as e:
            logger.warning("Gemini ranking unusable, using keyword matching: %s", e.message)
    else:
        logger.info("Gemini not configured, using keyword matching")
    return keyword_ranking(keywords, candidates, text_of)


# ---------- Entry points ----------
def recommend_projects_ai(user: dict) -> list:
    projects = get_documents(PROJECT, {"status": "open"}, limit=MAX_CANDIDATES)
    if not projects:
        return []
    ranked = _ai_or_fallback(
        project_prompt(user, projects), projects, "project_id", user.get("skills"), project_text
    )
    return [
        {
            "project_id": str(p["_id"]),
            "match_percentage": pct,
            "title": p.get("title", ""),
            "budget": p.get("budget", 0),
            "category": p.get("category", ""),
            "skills": p.get("requirements", []),
            "image": p.get("image", []),
        }
        for p, pct in ranked[:MAX_RESULTS]
    ]


def recommend_services_ai(user: dict) -> list:
    services = get_documents(SERVICE, {}, limit=MAX_CANDIDATES)
    if not services:
        return []
    own_projects = get_documents(PROJECT, {"client_id": user["_id"]})
    keywords = []
    for p in own_projects:
        keywords.append(p.get("category", ""))
        keywords.extend(p.get("requirements") or [])
    ranked = _ai_or_fallback(
        service_prompt(user, own_projects, services), services, "service_id", keywords, service_text
    )
    return [
        {
            "service_id": str(s["_id"]),
            "match_percentage": pct,
            "title": s.get("title", ""),
            "price": s.get("price", 0),
            "category": s.get("category", ""),
            "includes": s.get("includes", []),
            "images": s.get("images", []),
        }
        for s, pct in ranked[:MAX_RESULTS]
    ]
