"""Unit tests for the progress reconciler (app/services/progress_reconciler.py)"""
from datetime import timedelta

from app.schemas.achievement import AchievementProgress
from app.services import progress_reconciler
from app.services.progress_reconciler import index_unlock_records, reconcile_progress
from factories import NOW, completions_every_day, make_definition


def test_persisted_progress_wins_over_computed(unlock_record):
    catalog = [make_definition("quiz-master", "play_n_quizzes_total", {"count": 10})]
    records = index_unlock_records([unlock_record("quiz-master", progress_value=7, progress_max=10)])
    history = completions_every_day(2)  # live computation would say 2/10

    result = reconcile_progress(catalog, records, history, NOW)

    assert result == {"quiz-master": AchievementProgress(progress_value=7, progress_max=10)}


def test_persisted_progress_used_verbatim_for_untracked_types(unlock_record):
    catalog = [make_definition("deja-vu", "repeat_quiz", {"minCompletions": 2})]
    records = index_unlock_records([unlock_record("deja-vu", progress_value=1, progress_max=2)])

    result = reconcile_progress(catalog, records, [], NOW)

    assert result["deja-vu"] == AchievementProgress(progress_value=1, progress_max=2)


def test_unlocked_achievements_get_no_progress(unlock_record):
    catalog = [make_definition("first-quiz", "play_n_quizzes_total", {"count": 1})]
    records = index_unlock_records([
        unlock_record("first-quiz", unlocked_at=NOW - timedelta(days=3), progress_value=1, progress_max=1)
    ])

    assert reconcile_progress(catalog, records, completions_every_day(4), NOW) == {}


def test_record_without_progress_fields_falls_back_to_computed(unlock_record):
    catalog = [make_definition("enthusiast", "play_n_quizzes_total", {"count": 25})]
    records = index_unlock_records([unlock_record("enthusiast", progress_value=3)])  # progress_max missing

    result = reconcile_progress(catalog, records, completions_every_day(4), NOW)

    assert result["enthusiast"] == AchievementProgress(progress_value=4, progress_max=25)


def test_non_progress_types_are_omitted():
    catalog = [
        make_definition("hail-caesar", "score_5_of_5", {"category": "history"}),
        make_definition("deja-vu", "repeat_quiz", {"minCompletions": 2}),
    ]
    assert reconcile_progress(catalog, {}, completions_every_day(5), NOW) == {}


def test_not_started_achievements_are_omitted():
    catalog = [make_definition("perfectionist", "perfect_scores_total", {"count": 5})]
    assert reconcile_progress(catalog, {}, completions_every_day(3), NOW) == {}


def test_malformed_config_skips_only_that_achievement(caplog):
    catalog = [
        make_definition("broken", "play_n_quizzes_total", unlock_condition_config="{count: oops"),
        make_definition("working", "play_n_quizzes_total", {"count": 5}),
    ]

    result = reconcile_progress(catalog, {}, completions_every_day(2), NOW)

    assert list(result) == ["working"]
    assert "broken" in caplog.text


def test_unexpected_error_skips_only_that_achievement(monkeypatch):
    real_evaluate = progress_reconciler.evaluate

    def flaky_evaluate(condition, history, now):
        if getattr(condition, "count", None) == 13:
            raise RuntimeError("boom")
        return real_evaluate(condition, history, now)

    monkeypatch.setattr(progress_reconciler, "evaluate", flaky_evaluate)
    catalog = [
        make_definition("unlucky", "play_n_quizzes_total", {"count": 13}),
        make_definition("lucky", "play_n_quizzes_total", {"count": 7}),
    ]

    result = reconcile_progress(catalog, {}, completions_every_day(2), NOW)

    assert result == {"lucky": AchievementProgress(progress_value=2, progress_max=7)}


def test_index_unlock_records_prefers_unlocked(unlock_record):
    pending = unlock_record("ach-1", progress_value=2, progress_max=3)
    unlocked = unlock_record("ach-1", unlocked_at=NOW)

    assert index_unlock_records([pending, unlocked])["ach-1"] is unlocked
    assert index_unlock_records([unlocked, pending])["ach-1"] is unlocked


def test_computable_filter_skips_evaluation_but_keeps_persisted(unlock_record):
    catalog = [
        make_definition("gated-recorded", "play_n_quizzes_total", {"count": 10}),
        make_definition("gated-fresh", "play_n_quizzes_total", {"count": 10}),
        make_definition("open", "play_n_quizzes_total", {"count": 10}),
    ]
    records = index_unlock_records([unlock_record("gated-recorded", progress_value=7, progress_max=10)])

    result = reconcile_progress(
        catalog, records, completions_every_day(2), NOW,
        computable=lambda achievement: not achievement.id.startswith("gated"),
    )

    assert result == {
        "gated-recorded": AchievementProgress(progress_value=7, progress_max=10),
        "open": AchievementProgress(progress_value=2, progress_max=10),
    }
