"""Tests for services/experts/ranking.py and weights.py - Scoring and ordering."""
import pytest

from conftest import CURRENT_YEAR


def _verified(author_id="A1", works=None, **overrides):
    from app.schemas.experts import AuthorWork, VerificationInfo, VerifiedCandidate

    if works is None:
        works = [AuthorWork(work_id=f"W{i}", year=CURRENT_YEAR - 1, relevance=0.7) for i in range(4)]
    fields = {
        "id": f"https://openalex.org/{author_id}",
        "name": f"Author {author_id}",
        "works": works,
        "total_citations": 200,
        "last_author_count": 2,
        "corresponding_author_count": 0,
        "field_relevance": 1.0,
        "real_works_count": 40,
        "real_citation_count": 500,
        "institutions": ["University of Toronto"],
        "country_codes": ["CA"],
        "verification": VerificationInfo(
            cross_ref_author_id="S1", verification_method="doi_overlap", name_match_score=1.0,
        ),
    }
    fields.update(overrides)
    return VerifiedCandidate(**fields)


class TestWeights:
    """Test the weight tables."""

    def test_every_table_sums_to_one(self):
        """Each weight vector is a convex combination."""
        from app.services.experts.weights import WEIGHT_TABLES

        for weights in WEIGHT_TABLES.values():
            assert weights.total() == pytest.approx(1.0)

    def test_table_selection(self):
        """Trial intent and scope pick the table."""
        from app.services.experts.weights import (
            STANDARD_GLOBAL_WEIGHTS,
            TRIAL_LOCAL_WEIGHTS,
            select_weights,
        )

        assert select_weights(False, True) is STANDARD_GLOBAL_WEIGHTS
        assert select_weights(True, False) is TRIAL_LOCAL_WEIGHTS


class TestRecency:
    """Test recency decay."""

    @pytest.mark.parametrize("age,expected", [
        (0, 1.0), (4, 1.0), (5, 0.7), (7, 0.7), (8, 0.4), (10, 0.4), (11, 0.2), (30, 0.2),
    ])
    def test_decay_bands(self, age, expected):
        """Decay steps down by age band."""
        from app.services.experts import recency_decay

        assert recency_decay(CURRENT_YEAR - age, CURRENT_YEAR) == expected

    def test_missing_year(self):
        """Works without a year contribute nothing."""
        from app.services.experts import recency_decay

        assert recency_decay(0, CURRENT_YEAR) == 0.0

    def test_author_recency_ignores_undated_works(self):
        """The mean is taken over dated works only."""
        from app.schemas.experts import AuthorWork
        from app.services.experts import author_recency_score

        works = [
            AuthorWork(work_id="W1", year=CURRENT_YEAR),
            AuthorWork(work_id="W2", year=CURRENT_YEAR - 6),
            AuthorWork(work_id="W3", year=0),
        ]

        assert author_recency_score(works, CURRENT_YEAR) == pytest.approx(0.85)


class TestClinicalTrialIntent:
    """Test trial intent detection."""

    @pytest.mark.parametrize("topic", [
        "phase 3 oncology",
        "RCT exercise",
        "principal investigator diabetes",
        "clinical trials in asthma",
    ])
    def test_trial_topics(self, topic):
        from app.services.experts import detect_clinical_trial_intent

        assert detect_clinical_trial_intent(topic)

    @pytest.mark.parametrize("topic", ["Parkinson's disease", "vitamins cancer", "", None])
    def test_non_trial_topics(self, topic):
        from app.services.experts import detect_clinical_trial_intent

        assert not detect_clinical_trial_intent(topic)


class TestHardFilters:
    """Test candidate exclusion before scoring."""

    def test_no_topic_works_is_excluded(self):
        from app.services.experts import passes_hard_filters

        assert not passes_hard_filters(_verified(works=[]))

    def test_prolific_off_topic_author_is_excluded(self):
        """Five or more works with field relevance under 0.2 are excluded."""
        from app.schemas.experts import AuthorWork
        from app.services.experts import passes_hard_filters

        works = [AuthorWork(work_id=f"W{i}") for i in range(5)]

        assert not passes_hard_filters(_verified(works=works, field_relevance=0.1))

    def test_few_works_with_low_relevance_pass(self):
        """The off-topic rule needs at least five works."""
        from app.schemas.experts import AuthorWork
        from app.services.experts import passes_hard_filters

        works = [AuthorWork(work_id=f"W{i}") for i in range(4)]

        assert passes_hard_filters(_verified(works=works, field_relevance=0.1))


class TestScoreCandidate:
    """Test sub-scores and the final score."""

    def _score(self, candidate, mode=None, location=None, weights=None, max_raw_pi=1.0):
        from app.schemas.experts import SearchMode
        from app.services.experts import score_candidate
        from app.services.experts.weights import STANDARD_GLOBAL_WEIGHTS

        return score_candidate(
            candidate,
            mode=mode or SearchMode.EXPERTS,
            weights=weights or STANDARD_GLOBAL_WEIGHTS,
            max_raw_pi_score=max_raw_pi,
            location=location,
            current_year=CURRENT_YEAR,
        )

    def test_sub_scores(self):
        """Each axis is normalized as documented."""
        scores = self._score(_verified(raw_pi_score=0.5, corresponding_author_count=1))

        assert scores.works == pytest.approx(4 / 50)
        assert scores.citations == pytest.approx(0.5)
        assert scores.recency == 1.0
        assert scores.seniority == pytest.approx(0.75)
        assert scores.topic_dominance == pytest.approx(0.1)
        assert scores.pi_score == pytest.approx(0.5)
        assert scores.location == 0.0

    def test_all_scores_within_unit_interval(self):
        """Saturated inputs are capped at 1.0."""
        scores = self._score(_verified(
            real_works_count=2, real_citation_count=50_000, last_author_count=4, corresponding_author_count=4,
        ))

        for value in scores.model_dump().values():
            assert 0.0 <= value <= 1.0

    def test_zero_max_pi_gives_zero(self):
        """Without any trial authorship the PI axis is zero."""
        scores = self._score(_verified(), max_raw_pi=0.0)

        assert scores.pi_score == 0.0

    def test_final_is_weighted_sum(self):
        """Standard mode combines the axes with the weight vector."""
        from app.services.experts.weights import STANDARD_GLOBAL_WEIGHTS as w

        s = self._score(_verified())

        expected = (
            w.works * s.works + w.citations * s.citations + w.recency * s.recency
            + w.field_relevance * s.field_relevance + w.seniority * s.seniority
            + w.topic_dominance * s.topic_dominance + w.pi_score * s.pi_score
        )
        assert s.final == pytest.approx(expected)

    def test_relevance_gate(self):
        """Weak field relevance multiplies the final score by 0.7."""
        from app.services.experts.weights import STANDARD_GLOBAL_WEIGHTS as w

        strong = self._score(_verified(field_relevance=0.4))
        weak = self._score(_verified(field_relevance=0.39))

        ungated = strong.final - w.field_relevance * 0.01
        assert weak.final == pytest.approx(ungated * 0.7)

    def test_dashboard_formula(self):
        """Dashboard mode blends publication rate and citations evenly."""
        from app.schemas.experts import SearchMode

        candidate = _verified(recent_works_1y=5, recent_works=15, real_citation_count=1500)

        scores = self._score(candidate, mode=SearchMode.DASHBOARD)

        assert scores.citations == pytest.approx(0.5)
        assert scores.final == pytest.approx(0.5 * (0.75 * 0.5 + 0.25 * 1.0) + 0.5 * 0.5)

    def test_location_bonus_does_not_change_final(self):
        """The bonus is recorded but stays out of the final score."""
        from app.services.experts import LocationQuery

        with_location = self._score(_verified(), location=LocationQuery.parse("Toronto, Canada"))
        without = self._score(_verified())

        assert with_location.location == 1.0
        assert with_location.final == without.final


class TestRankCandidates:
    """Test filtering and ordering."""

    def test_sorted_by_final_score(self):
        """Higher final score ranks first."""
        from app.schemas.experts import SearchMode
        from app.services.experts import rank_candidates

        candidates = [
            _verified("A1", real_citation_count=100),
            _verified("A2", real_citation_count=900),
            _verified("A3", real_citation_count=500),
        ]

        ranked = rank_candidates(candidates, "parkinson", None, SearchMode.EXPERTS, CURRENT_YEAR)

        assert [r.id.rsplit("/", 1)[1] for r in ranked] == ["A2", "A3", "A1"]
        finals = [r.scores.final for r in ranked]
        assert finals == sorted(finals, reverse=True)

    def test_identical_candidates_break_on_id(self):
        """Candidates with identical scores fall back to a stable id order."""
        from app.schemas.experts import SearchMode
        from app.services.experts import rank_candidates

        candidates = [_verified("A9"), _verified("A3"), _verified("A5")]

        ranked = rank_candidates(candidates, "parkinson", None, SearchMode.EXPERTS, CURRENT_YEAR)

        assert [r.id.rsplit("/", 1)[1] for r in ranked] == ["A3", "A5", "A9"]

    def test_ordering_is_input_order_independent(self):
        """Shuffled input gives the same ranking."""
        from app.schemas.experts import SearchMode
        from app.services.experts import rank_candidates

        candidates = [_verified(f"A{i}", real_citation_count=100 * (i % 3)) for i in range(6)]

        forward = rank_candidates(candidates, "parkinson", None, SearchMode.EXPERTS, CURRENT_YEAR)
        backward = rank_candidates(candidates[::-1], "parkinson", None, SearchMode.EXPERTS, CURRENT_YEAR)

        assert [r.id for r in forward] == [r.id for r in backward]

    def test_filtered_candidates_are_dropped(self):
        """Hard-filtered candidates do not appear."""
        from app.schemas.experts import SearchMode
        from app.services.experts import rank_candidates

        ranked = rank_candidates(
            [_verified("A1"), _verified("A2", works=[])], "parkinson", None, SearchMode.EXPERTS, CURRENT_YEAR,
        )

        assert len(ranked) == 1

    def test_lifetime_totals_are_carried(self):
        """Ranked experts always carry lifetime works and citations."""
        from app.schemas.experts import SearchMode
        from app.services.experts import rank_candidates

        [expert] = rank_candidates(
            [_verified(real_works_count=None, real_citation_count=None)],
            "parkinson", None, SearchMode.EXPERTS, CURRENT_YEAR,
        )

        assert expert.real_works_count == 4
        assert expert.real_citation_count == 200

    def test_trial_intent_raises_pi_weight(self):
        """With trial intent a strong PI profile can overtake citations."""
        from app.schemas.experts import SearchMode
        from app.services.experts import rank_candidates

        investigator = _verified("A1", raw_pi_score=1.0, real_citation_count=300)
        cited = _verified("A2", raw_pi_score=0.0, real_citation_count=600)

        general = rank_candidates([investigator, cited], "oncology", None, SearchMode.EXPERTS, CURRENT_YEAR)
        trials = rank_candidates([investigator, cited], "oncology trials", None, SearchMode.EXPERTS, CURRENT_YEAR)

        assert general[0].id.endswith("A2")
        assert trials[0].id.endswith("A1")


def _ranked(author_id, final=0.5, seniority=0.5, pi_score=0.5, topic_works=4, location=0.0):
    from app.schemas.experts import AuthorWork, RankedExpert, ScoreBreakdown

    works = [AuthorWork(work_id=f"{author_id}-W{i}", year=CURRENT_YEAR - 1) for i in range(topic_works)]
    scores = ScoreBreakdown(
        works=0.5, citations=0.5, recency=0.5, field_relevance=1.0, seniority=seniority,
        topic_dominance=0.5, pi_score=pi_score, location=location, final=final,
    )
    return RankedExpert(**_verified(author_id, works=works).model_dump(), scores=scores)


def _order(experts):
    from app.services.experts import sort_key

    return [e.id.rsplit("/", 1)[1] for e in sorted(experts, key=sort_key)]


class TestSortKey:
    """Test the tie-break chain for equal final scores."""

    def test_final_score_decides_first(self):
        assert _order([_ranked("A1", final=0.4, seniority=1.0), _ranked("A2", final=0.6)]) == ["A2", "A1"]

    def test_equal_final_breaks_on_seniority(self):
        assert _order([_ranked("A1", seniority=0.2), _ranked("A2", seniority=0.8)]) == ["A2", "A1"]

    def test_then_pi_score(self):
        assert _order([_ranked("A1", pi_score=0.1), _ranked("A2", pi_score=0.9)]) == ["A2", "A1"]

    def test_then_topic_work_count(self):
        assert _order([_ranked("A1", topic_works=3), _ranked("A2", topic_works=7)]) == ["A2", "A1"]

    def test_then_location_bonus(self):
        assert _order([_ranked("A1", location=0.3), _ranked("A2", location=1.0)]) == ["A2", "A1"]

    def test_then_id(self):
        assert _order([_ranked("A2"), _ranked("A1")]) == ["A1", "A2"]

    def test_earlier_keys_outrank_later_ones(self):
        """Seniority beats PI score, topic works and location."""
        experts = [
            _ranked("A1", seniority=0.4, pi_score=1.0, topic_works=9, location=1.0),
            _ranked("A2", seniority=0.6, pi_score=0.0, topic_works=1, location=0.0),
        ]

        assert _order(experts) == ["A2", "A1"]

    def test_finals_in_same_bucket_tie(self):
        """Finals 0.0003 apart in one 0.001 bucket fall through to seniority."""
        experts = [_ranked("A1", final=0.5004, seniority=0.2), _ranked("A2", final=0.5001, seniority=0.9)]

        assert _order(experts) == ["A2", "A1"]

    def test_finals_across_bucket_edge_do_not_tie(self):
        """0.5004 and 0.5006 round to different buckets, so the higher final wins."""
        experts = [_ranked("A1", final=0.5004, seniority=0.9), _ranked("A2", final=0.5006, seniority=0.2)]

        assert _order(experts) == ["A2", "A1"]

    def test_sub_bucket_seniority_differences_tie(self):
        """Seniority also compares at 0.001, so tiny gaps fall through to PI score."""
        experts = [_ranked("A1", seniority=0.5002, pi_score=0.1), _ranked("A2", seniority=0.5001, pi_score=0.9)]

        assert _order(experts) == ["A2", "A1"]
