"""Tests for quiz and reward wheel endpoints"""
from habit_quest.gamification.quiz_engine import DEFAULT_QUESTIONS


ANSWERS = {q.id: q.answer_index for q in DEFAULT_QUESTIONS}


def _quiz_url(user_id, path=""):
    return f"/api/v1/users/{user_id}/quiz{path}"


def _answer_current(api_client, auth_headers, user_id, status):
    choice = ANSWERS[status["question"]["id"]]
    return api_client.post(_quiz_url(user_id, "/answer"), json={"choice_index": choice}, headers=auth_headers)


def test_quiz_without_session_is_bad_request(api_client, auth_headers, unique_user_id):
    response = api_client.get(_quiz_url(unique_user_id), headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "QuizStateError"


def test_start_quiz_hides_answer(api_client, auth_headers, unique_user_id):
    response = api_client.post(_quiz_url(unique_user_id), headers=auth_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["state"] == "awaiting_answer"
    assert data["round"] == 0
    assert data["rounds"] == 3
    assert "answer_index" not in data["question"]


def test_round_with_spin_then_wheel_locked_for_the_day(api_client, auth_headers, unique_user_id):
    status = api_client.post(_quiz_url(unique_user_id), headers=auth_headers).json()

    answered = _answer_current(api_client, auth_headers, unique_user_id, status).json()
    assert answered["correct"] is True
    assert answered["xp_awarded"] == 10
    assert answered["wheel_available"] is True
    assert answered["status"]["state"] == "spin_eligible"

    spin = api_client.post(_quiz_url(unique_user_id, "/spin"), headers=auth_headers)
    assert spin.status_code == 200
    spin_data = spin.json()
    assert spin_data["xp_awarded"] == spin_data["segment"]["reward_value"]
    assert spin_data["rotation_degrees"] >= 5 * 360
    assert spin_data["status"]["round"] == 1

    # Round 2: the wheel already fired today, so the round closes without it
    answered = _answer_current(api_client, auth_headers, unique_user_id, spin_data["status"]).json()
    assert answered["wheel_available"] is False
    assert answered["status"]["state"] == "awaiting_answer"
    assert answered["status"]["round"] == 2

    blocked = api_client.post(_quiz_url(unique_user_id, "/spin"), headers=auth_headers)
    assert blocked.status_code == 400

    xp = api_client.get(f"/api/v1/users/{unique_user_id}/xp", headers=auth_headers).json()
    assert xp["categories"]["quiz"] == 20
    assert xp["categories"]["wheel"] == spin_data["xp_awarded"]


def test_skip_and_complete_session(api_client, auth_headers, unique_user_id):
    status = api_client.post(_quiz_url(unique_user_id), headers=auth_headers).json()

    for _ in range(3):
        answered = api_client.post(
            _quiz_url(unique_user_id, "/answer"), json={"choice_index": 3}, headers=auth_headers
        ).json()
        status = answered["status"]
        if status["state"] == "spin_eligible":
            status = api_client.post(_quiz_url(unique_user_id, "/skip"), headers=auth_headers).json()

    assert status["state"] == "session_complete"
    assert status["question"] is None

    again = api_client.post(_quiz_url(unique_user_id, "/answer"), json={"choice_index": 0}, headers=auth_headers)
    assert again.status_code == 400


def test_negative_choice_is_rejected(api_client, auth_headers, unique_user_id):
    api_client.post(_quiz_url(unique_user_id), headers=auth_headers)
    response = api_client.post(_quiz_url(unique_user_id, "/answer"), json={"choice_index": -1}, headers=auth_headers)
    assert response.status_code == 422


def test_abandon_keeps_earned_xp(api_client, auth_headers, unique_user_id):
    status = api_client.post(_quiz_url(unique_user_id), headers=auth_headers).json()
    _answer_current(api_client, auth_headers, unique_user_id, status)

    response = api_client.delete(_quiz_url(unique_user_id), headers=auth_headers)
    assert response.status_code == 204

    assert api_client.get(_quiz_url(unique_user_id), headers=auth_headers).status_code == 400
    xp = api_client.get(f"/api/v1/users/{unique_user_id}/xp", headers=auth_headers).json()
    assert xp["categories"]["quiz"] == 10
