"""
Unit tests for the Bucket Aggregator and Derived Metrics Finalizer.
"""

import pytest

from practice_analytics.analytics.aggregator import aggregate, subtopic_key
from practice_analytics.analytics.buckets import BucketMap, SkillBucket, StreakTracker
from practice_analytics.analytics.collator import collate_questions
from practice_analytics.analytics.finalizer import finalize, is_fragile
from practice_analytics.bank.normalize import normalize_class_data


@pytest.fixture
def aggregated(sample_class_data, make_attempt):
    attempts = [
        make_attempt("lim-1", correct=True, attempts=2, time=40, correct_attempts=1),
        make_attempt("lim-2", correct=False, attempts=3, time=90),
        make_attempt("gr-1", correct=True, attempts=1, time=20),
    ]
    return aggregate(collate_questions(sample_class_data, attempts))


class TestBucketMap:
    def test_creates_zeroed_bucket_on_first_access(self):
        buckets = BucketMap(SkillBucket)
        bucket = buckets["limits"]

        assert bucket.key == "limits"
        assert bucket.total_questions == 0
        assert buckets["limits"] is bucket
        assert len(buckets) == 1

    def test_get_does_not_create(self):
        buckets = BucketMap(SkillBucket)
        assert buckets.get("limits") is None
        assert "limits" not in buckets

    def test_insertion_order(self):
        buckets = BucketMap(SkillBucket)
        for key in ["b", "a", "c", "a"]:
            buckets[key]
        assert list(buckets) == ["b", "a", "c"]


class TestStreakTracker:
    def test_best_and_current(self):
        tracker = StreakTracker()
        for correct in [True, True, False, True]:
            tracker.update(correct)
        assert tracker.best == 2
        assert tracker.current == 1


class TestAggregate:
    def test_summary_sums(self, aggregated):
        assert aggregated.total_questions == 4
        assert aggregated.attempted_questions == 3
        assert aggregated.correct_questions == 2
        assert aggregated.unanswered == 1
        assert aggregated.total_attempts == 6
        assert aggregated.total_time_seconds == pytest.approx(150)
        assert aggregated.unanswered_questions == ["AP Calculus BC:Derivatives:Graphs:1"]

    def test_skill_buckets(self, aggregated):
        limits = aggregated.skills["limits"]
        assert limits.total_questions == 2
        assert limits.attempted_questions == 2
        assert limits.correct_questions == 1
        assert limits.attempts == 5
        assert limits.mistake_counts == {"sign error": 1}
        assert list(aggregated.skills) == ["limits", "algebra", "graph_reading"]

    def test_untagged_question_has_no_skill_bucket(self, aggregated):
        assert len(aggregated.skills) == 3
        assert "unknown" not in aggregated.skills
        # Still counted everywhere else
        assert aggregated.difficulties["hard"].total_questions == 1

    def test_dimension_buckets(self, aggregated):
        assert list(aggregated.units) == ["Limits", "Derivatives"]
        assert subtopic_key("Limits", "Definition") in aggregated.subtopics
        assert list(aggregated.difficulties) == ["easy", "medium", "hard"]
        assert list(aggregated.cognitive) == ["recall", "application"]
        assert aggregated.units["Derivatives"].unanswered == 1

    def test_zero_attempt_count_still_counts_once(self, sample_class_data, make_attempt):
        result = aggregate(
            collate_questions(sample_class_data, [make_attempt("lim-1", correct=True, attempts=0)])
        )
        assert result.total_attempts == 1
        assert result.skills["limits"].attempts == 0


class TestFinalize:
    def test_summary(self, aggregated):
        summary = finalize(aggregated).summary
        assert summary.avg_accuracy == pytest.approx(2 / 3)
        assert summary.avg_time_seconds == pytest.approx(150 / 6)

    def test_skill_rates(self, aggregated):
        skills = {s.skill: s for s in finalize(aggregated).skills}
        limits = skills["limits"]

        assert limits.accuracy == pytest.approx(0.5)
        assert limits.avg_time_seconds == pytest.approx(130 / 5)
        # lim-1: 1/2, lim-2: 0/3
        assert limits.mastery == pytest.approx(0.25)
        assert skills["graph_reading"].mastery == pytest.approx(1.0)

    @pytest.mark.parametrize(
        "attempts, correct_attempts, expected",
        [
            (0, 2, 1.0),
            (1, 3, 1.0),
            (4, 1, 0.25),
            (0, 0, 0.0),
        ],
    )
    def test_mastery_on_partially_recorded_attempts(
        self, make_bank, make_question, make_attempt, attempts, correct_attempts, expected
    ):
        bank = make_bank([make_question("q1", skills=["s"])])
        attempt = make_attempt(
            "q1", correct=correct_attempts > 0, attempts=attempts, correct_attempts=correct_attempts
        )

        skill = finalize(aggregate(collate_questions(bank, [attempt]))).skills[0]

        assert skill.mastery == pytest.approx(expected)

    def test_duplicate_tags_count_once(self, make_attempt):
        raw = {
            "units": [
                {
                    "unitName": "U",
                    "subtopics": [
                        {
                            "name": "S",
                            "questions": [{"id": "q1", "metadata": {"skillTags": ["a", "a", "b"]}}],
                        }
                    ],
                }
            ]
        }
        bank = normalize_class_data(raw, "Dupes")

        contexts = collate_questions(bank, [make_attempt("q1", correct=True)])
        skills = finalize(aggregate(contexts)).skills

        assert [s.skill for s in skills] == ["a", "b"]
        assert skills[0].total_questions == 1
        assert skills[0].mastery == pytest.approx(1.0)

    def test_units_nest_their_subtopics(self, aggregated):
        units = {u.key: u for u in finalize(aggregated).units}
        assert [s.key for s in units["Limits"].subtopics] == ["Limits → Definition"]
        assert [s.key for s in units["Derivatives"].subtopics] == ["Derivatives → Graphs"]

    def test_mistake_patterns(self, aggregated):
        patterns = finalize(aggregated).mistake_patterns
        assert [(p.skill, p.pattern, p.count) for p in patterns] == [
            ("limits", "sign error", 1),
            ("algebra", "sign error", 1),
        ]

    def test_empty_aggregation(self, make_bank):
        result = aggregate(collate_questions(make_bank([]), []))
        metrics = finalize(result)

        assert metrics.summary.avg_accuracy == 0.0
        assert metrics.summary.avg_time_seconds == 0.0
        assert metrics.skills == []

    def test_bucket_invariants(self, aggregated):
        metrics = finalize(aggregated)
        for stat in [*metrics.units, *metrics.subtopics, *metrics.difficulties, *metrics.cognitive]:
            assert stat.attempted_questions <= stat.total_questions
            assert stat.correct_questions <= stat.attempted_questions
            assert 0.0 <= stat.accuracy <= 1.0
            if stat.attempted_questions == 0:
                assert stat.accuracy == 0.0


class TestFragile:
    def test_rule(self):
        assert is_fragile(3, 0.5, 1) is True
        assert is_fragile(2, 0.5, 0) is False
        assert is_fragile(3, 0.7, 0) is False
        assert is_fragile(3, 0.5, 2) is False

    def test_fragile_skills_listed(self, make_bank, make_question, make_attempt):
        questions = [make_question(f"q{i}", skills=["vectors"]) for i in range(4)]
        attempts = [
            make_attempt("q0", correct=True),
            make_attempt("q1", correct=False),
            make_attempt("q2", correct=False),
            make_attempt("q3", correct=False),
        ]
        metrics = finalize(aggregate(collate_questions(make_bank(questions), attempts)))

        assert metrics.fragile_skills == ["vectors"]
        assert metrics.streaks[0].best == 1

    def test_recent_streak_prevents_fragile(self, make_bank, make_question, make_attempt):
        questions = [make_question(f"q{i}", skills=["vectors"]) for i in range(3)]
        attempts = [
            make_attempt("q0", correct=False),
            make_attempt("q1", correct=False),
            make_attempt("q2", correct=True, streak=3),
        ]
        metrics = finalize(aggregate(collate_questions(make_bank(questions), attempts)))
        assert metrics.fragile_skills == []
