from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from assessment_import.models.admin_user import AdminUser
from assessment_import.models.import_batch import ImportBatch, ImportQuestionMapping
from assessment_import.services.imports.mapping_store import MappingStore
from assessment_import.services.imports.question_matcher import QuestionMatch
from tests.utils.catalog import seed_model


def _batch(db: Session, admin: AdminUser, source: str = "legacy") -> ImportBatch:
    batch = ImportBatch(source=source, filename="x.json", imported_by_admin_id=admin.id, assessment_count=0)
    db.add(batch)
    db.flush()
    return batch


def _match(external_id: str, internal_id: int | None, *, pinned: bool = False) -> QuestionMatch:
    return QuestionMatch(
        external_id=external_id,
        external_text=external_id,
        internal_id=internal_id,
        internal_text=None,
        confidence=1.0 if pinned else (0.8 if internal_id else 0.0),
        dimension=None,
        band="pinned" if pinned else ("good" if internal_id else "unmatched"),
        pinned=pinned,
    )


def test_persist_skips_pinned_unmatched_and_repeated_entries(db_session: Session, admin: AdminUser) -> None:
    seeded = seed_model()
    first, second, third = (question.id for question in seeded.questions)
    batch = _batch(db_session, admin)

    rows = MappingStore(db_session).persist(
        batch=batch,
        model_id=seeded.model.id,
        matches=[
            _match("Q1", first),
            _match("Q1", second),
            _match("Q2", second, pinned=True),
            _match("Q3", None),
            _match("Q4", third),
        ],
    )

    assert [(row.external_question_id, row.question_id) for row in rows] == [("Q1", first), ("Q4", third)]
    assert all(row.import_batch_id == batch.id for row in rows)
    assert rows[0].confidence == 0.8


def test_lookup_and_load_are_scoped_by_source_and_model(db_session: Session, admin: AdminUser) -> None:
    seeded = seed_model()
    other = seed_model(slug="other-model")
    question_id = seeded.questions[0].id
    store = MappingStore(db_session)
    store.persist(batch=_batch(db_session, admin), model_id=seeded.model.id, matches=[_match("Q1", question_id)])

    assert store.lookup("legacy", seeded.model.id, "Q1") == question_id
    assert store.lookup("legacy", seeded.model.id, "Q2") is None
    assert store.lookup("other", seeded.model.id, "Q1") is None
    assert store.load("legacy", other.model.id) == {}
    assert store.load("legacy", seeded.model.id) == {"Q1": question_id}


def test_mapping_to_a_question_of_another_model_is_ignored(db_session: Session, admin: AdminUser) -> None:
    seeded = seed_model()
    other = seed_model(slug="other-model")
    batch = _batch(db_session, admin)
    db_session.add(
        ImportQuestionMapping(
            source="legacy",
            model_id=seeded.model.id,
            external_question_id="Q1",
            question_id=other.questions[0].id,
            import_batch_id=batch.id,
            confidence=0.9,
        )
    )
    db_session.flush()

    assert MappingStore(db_session).lookup("legacy", seeded.model.id, "Q1") is None


def test_list_mappings_orders_by_external_id(db_session: Session, admin: AdminUser) -> None:
    seeded = seed_model()
    store = MappingStore(db_session)
    store.persist(
        batch=_batch(db_session, admin),
        model_id=seeded.model.id,
        matches=[_match("b", seeded.questions[1].id), _match("a", seeded.questions[0].id)],
    )

    rows = store.list_mappings("legacy", seeded.model.id)

    assert [row.external_question_id for row in rows] == ["a", "b"]
    assert rows[0].question.text == seeded.questions[0].text


def test_persist_repoints_a_mapping_whose_question_left_the_model(db_session: Session, admin: AdminUser) -> None:
    seeded = seed_model()
    other = seed_model(slug="other-model")
    db_session.add(
        ImportQuestionMapping(
            source="legacy",
            model_id=seeded.model.id,
            external_question_id="Q1",
            question_id=other.questions[0].id,
            import_batch_id=_batch(db_session, admin).id,
            confidence=0.9,
        )
    )
    db_session.flush()
    batch = _batch(db_session, admin)
    store = MappingStore(db_session)

    rows = store.persist(batch=batch, model_id=seeded.model.id, matches=[_match("Q1", seeded.questions[0].id)])

    assert [(row.question_id, row.import_batch_id, row.confidence) for row in rows] == [
        (seeded.questions[0].id, batch.id, 0.8)
    ]
    assert store.lookup("legacy", seeded.model.id, "Q1") == seeded.questions[0].id
    assert db_session.scalar(select(func.count(ImportQuestionMapping.id))) == 1
