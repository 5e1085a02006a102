from unittest.mock import MagicMock, patch

import pytest
from bson import ObjectId

import database
import recommendations
from integrations import gemini
from responses import ExternalServiceError


@pytest.fixture
def gemini_on(monkeypatch):
    monkeypatch.setattr(gemini, "GEMINI_API_KEY", "test-key")
    model = MagicMock()
    with patch("integrations.gemini.genai.GenerativeModel", return_value=model):
        yield model


def reply(model, text):
    model.generate_content.return_value = MagicMock(text=text)


def open_project(title, requirements, **extra):
    data = {"title": title, "budget": 1000000, "category": "Mobile Development", "status": "open", "requirements": requirements, "image": []}
    data.update(extra)
    return database.create_document("project", data)


@pytest.mark.parametrize(
    "text",
    [
        '[{"project_id": "a", "match_percentage": 90}]',
        '```json\n[{"project_id": "a", "match_percentage": 90}]\n```',
        '```\n[{"project_id": "a", "match_percentage": 90}]```',
        '`[{"project_id": "a", "match_percentage": 90}]`',
    ],
)
def test_parse_json_strips_fences(text):
    assert gemini.parse_json(text) == [{"project_id": "a", "match_percentage": 90}]


@pytest.mark.parametrize("text", ["Sorry, I cannot help with that", '"just a string"', ""])
def test_parse_json_rejects_non_json(text):
    with pytest.raises(ExternalServiceError):
        gemini.parse_json(text)


def test_generate_json_without_key():
    with pytest.raises(ExternalServiceError) as exc:
        gemini.generate_json("hi")
    assert exc.value.status_code == 503


def test_rank_reply_filters_clamps_and_sorts():
    a, b = {"_id": ObjectId()}, {"_id": ObjectId()}
    ranked = recommendations.rank_reply(
        [
            {"project_id": str(a["_id"]), "match_percentage": 40},
            {"project_id": "unknown", "match_percentage": 99},
            {"project_id": str(b["_id"]), "match_percentage": 150},
            {"project_id": str(a["_id"]), "match_percentage": 10},
            "garbage",
        ],
        [a, b],
        "project_id",
    )
    assert ranked == [(b, 100.0), (a, 40.0)]


def test_rank_reply_needs_a_list():
    with pytest.raises(ExternalServiceError):
        recommendations.rank_reply({"answer": 42}, [], "project_id")


def test_ai_projects_from_gemini(db, freelancer, gemini_on):
    first = open_project("Loyalty app", ["React Native"])
    second = open_project("Company site", ["WordPress"])
    open_project("Closed", ["React Native"], status="completed")
    reply(
        gemini_on,
        "```json\n"
        f'[{{"project_id": "{second["_id"]}", "match_percentage": 35}}, '
        f'{{"project_id": "{first["_id"]}", "match_percentage": 92.5}}]\n```',
    )

    result = recommendations.recommend_projects_ai(freelancer)

    assert [r["project_id"] for r in result] == [str(first["_id"]), str(second["_id"])]
    assert result[0] == {
        "project_id": str(first["_id"]),
        "match_percentage": 92.5,
        "title": "Loyalty app",
        "budget": 1000000,
        "category": "Mobile Development",
        "skills": ["React Native"],
        "image": [],
    }
    prompt = gemini_on.generate_content.call_args.args[0]
    assert "React Native, Firebase" in prompt
    assert str(first["_id"]) in prompt
    assert "Closed" not in prompt


def test_ai_projects_fall_back_on_bad_reply(db, freelancer, gemini_on):
    match = open_project("Firebase chat", ["Firebase"])
    open_project("Company site", ["WordPress"], category="Web")
    reply(gemini_on, "I think the first project fits best.")

    result = recommendations.recommend_projects_ai(freelancer)
    assert [r["project_id"] for r in result] == [str(match["_id"])]
    assert result[0]["match_percentage"] == 50.0


def test_ai_projects_fall_back_when_gemini_fails(db, freelancer, gemini_on):
    open_project("Firebase chat", ["Firebase"])
    gemini_on.generate_content.side_effect = RuntimeError("quota exceeded")
    assert len(recommendations.recommend_projects_ai(freelancer)) == 1


def test_ai_projects_limits_results(db, freelancer):
    for i in range(12):
        open_project(f"React Native app {i}", ["React Native"])
    assert len(recommendations.recommend_projects_ai(freelancer)) == 10


def test_ai_projects_without_candidates(db, freelancer):
    assert recommendations.recommend_projects_ai(freelancer) == []


def test_ai_services_from_gemini(db, freelancer, client_user, gemini_on):
    database.create_document("project", {"client_id": client_user["_id"], "title": "Loyalty app", "category": "Mobile", "requirements": ["React Native"]})
    service = database.create_document(
        "service", {"freelancer_id": freelancer["_id"], "title": "RN app", "price": 500, "category": "Mobile", "includes": ["Code"], "images": []}
    )
    reply(gemini_on, f'[{{"service_id": "{service["_id"]}", "match_percentage": 88}}]')

    result = recommendations.recommend_services_ai(client_user)
    assert result == [
        {
            "service_id": str(service["_id"]),
            "match_percentage": 88.0,
            "title": "RN app",
            "price": 500,
            "category": "Mobile",
            "includes": ["Code"],
            "images": [],
        }
    ]
    assert "Loyalty app" in gemini_on.generate_content.call_args.args[0]


def test_keyword_ranking():
    a = {"text": "React Native and Firebase"}
    b = {"text": "Only firebase here"}
    c = {"text": "Nothing"}
    ranked = recommendations.keyword_ranking(["React Native", "firebase", "Firebase"], [c, b, a], lambda d: d["text"])
    assert ranked == [(a, 100.0), (b, 50.0)]
    assert recommendations.keyword_ranking([], [a], lambda d: d["text"]) == []
