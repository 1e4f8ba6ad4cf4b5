from conftest import auth
from lms.models import FeatureControl, FeatureName, User, UserRole
from lms.services.feature_service import FeatureGate


def test_defaults_are_seeded_once(db):
    gate = FeatureGate()

    assert gate.initialize_features(db) == 4
    assert gate.initialize_features(db) == 0
    assert {f.feature_name for f in gate.list_features(db)} == set(FeatureName.ALL)
    assert not any(f.is_premium for f in gate.list_features(db))


def test_gate_rules(db, admin, student, premium_student):
    gate = FeatureGate()

    # no control row: free
    assert gate.has_access(db, FeatureName.NOTES, student)

    db.add(FeatureControl(feature_name=FeatureName.QUIZZES, label="Quizzes", is_premium=True))
    db.commit()

    assert not gate.has_access(db, FeatureName.QUIZZES, student)
    assert gate.has_access(db, FeatureName.QUIZZES, premium_student)
    assert gate.has_access(db, FeatureName.QUIZZES, admin)
    assert not gate.has_access(db, FeatureName.QUIZZES, None)


def test_premium_admin_flag_is_irrelevant(db):
    admin = User(name="Root", email="root@example.com", role=UserRole.ADMIN, is_premium=False)
    db.add_all([admin, FeatureControl(feature_name=FeatureName.SHORT_ANSWER_QUIZ, label="SA", is_premium=True)])
    db.commit()

    assert FeatureGate().has_access(db, FeatureName.SHORT_ANSWER_QUIZ, admin)


def test_admin_toggles_feature(client, db, admin, student):
    FeatureGate().initialize_features(db)

    response = client.patch(
        "/api/features/",
        json={"feature_name": FeatureName.QUIZZES, "is_premium": True},
        headers=auth(admin)
    )

    assert response.status_code == 200
    assert response.json()["is_premium"] is True
    assert client.get("/api/quizzes/", headers=auth(student)).status_code == 403

    listed = client.get("/api/features/", headers=auth(admin)).json()
    assert {f["feature_name"]: f["is_premium"] for f in listed}[FeatureName.QUIZZES] is True


def test_toggle_unknown_feature(client, admin):
    response = client.patch(
        "/api/features/",
        json={"feature_name": "flashcards", "is_premium": True},
        headers=auth(admin)
    )

    assert response.status_code == 404


def test_students_can_read_but_not_manage_features(client, db, student):
    FeatureGate().initialize_features(db)

    listed = client.get("/api/features/", headers=auth(student))
    toggled = client.patch(
        "/api/features/",
        json={"feature_name": FeatureName.QUIZZES, "is_premium": True},
        headers=auth(student)
    )

    assert listed.status_code == 200
    assert len(listed.json()) == 4
    assert toggled.status_code == 403


def test_feature_list_requires_identity(client):
    assert client.get("/api/features/").status_code == 401
