"""Tests for result ranking and the QuickOpen session."""

import logging
from pathlib import Path

import pytest

from quickopen.config_manager import Settings
from quickopen.models import MatchWindow
from quickopen.ranker import QuickOpen, QuickOpenError, ResultRanker, State
from quickopen.workspace import WorkspaceIndexer


def _paths(results):
    return [r.path for r in results]


class TestResultRanker:
    """Tests for ResultRanker.rank."""

    def test_empty_query_returns_nothing(self, make_snapshot):
        snapshot = make_snapshot("abc.txt", "a_b_c.md", "xaxbxc.md")
        assert ResultRanker().rank("", snapshot) == []
        assert ResultRanker(filter_mode="none").rank("", snapshot) == []

    def test_no_snapshot_returns_nothing(self):
        assert ResultRanker().rank("abc", None) == []

    def test_sorted_by_descending_score(self, make_snapshot):
        snapshot = make_snapshot("xaxbxc.md", "a_b_c.md", "abc.txt")
        results = ResultRanker(filter_mode="none").rank("abc", snapshot)

        assert _paths(results) == ["abc.txt", "a_b_c.md", "xaxbxc.md"]
        assert [r.score for r in results] == [170, 120, 60]
        assert results[0].window == MatchWindow(0, 3)

    def test_running_mean_depends_on_order(self, make_snapshot):
        ranker = ResultRanker()

        best_first = ranker.rank("abc", make_snapshot("abc.txt", "a_b_c.md", "xaxbxc.md"))
        worst_first = ranker.rank("abc", make_snapshot("xaxbxc.md", "a_b_c.md", "abc.txt"))

        assert _paths(best_first) == ["abc.txt"]
        assert _paths(worst_first) == ["abc.txt", "a_b_c.md", "xaxbxc.md"]

    def test_no_matches_count_towards_mean(self, make_snapshot):
        # mean after "zzz.txt" and "xaxbxc.md" is (0 + 60) // 2
        results = ResultRanker().rank("abc", make_snapshot("zzz.txt", "xaxbxc.md"))
        assert _paths(results) == ["xaxbxc.md"]

    def test_min_score_filter(self, make_snapshot):
        snapshot = make_snapshot("xaxbxc.md", "a_b_c.md", "abc.txt")
        ranker = ResultRanker(filter_mode="min_score", min_score=100)
        assert _paths(ranker.rank("abc", snapshot)) == ["abc.txt", "a_b_c.md"]

    def test_ties_broken_by_path(self, make_snapshot):
        results = ResultRanker().rank("abc", make_snapshot("b/abc.txt", "a/abc.txt"))
        assert _paths(results) == ["a/abc.txt", "b/abc.txt"]

    def test_same_path_deduplicated(self, make_snapshot):
        results = ResultRanker().rank("abc", make_snapshot("abc.txt", "abc.txt"))
        assert _paths(results) == ["abc.txt"]

    def test_limit(self, make_snapshot):
        snapshot = make_snapshot("xaxbxc.md", "a_b_c.md", "abc.txt")
        assert _paths(ResultRanker().rank("abc", snapshot, limit=1)) == ["abc.txt"]

    def test_match_on_path(self, make_snapshot):
        snapshot = make_snapshot("src/fuzzy_match.py", "tests/test_fuzzy_match.py")

        assert ResultRanker().rank("srcfm", snapshot) == []

        results = ResultRanker(match_on="path").rank("srcfm", snapshot)
        assert _paths(results) == ["src/fuzzy_match.py"]
        assert results[0].window == MatchWindow(0, 11)
        assert results[0].matched_text == "src/fuzzy_match.py"

    def test_candidate_outside_root_is_skipped(self, make_snapshot, caplog):
        snapshot = make_snapshot("abc.txt")
        snapshot = type(snapshot)(snapshot.root, (Path("/elsewhere/abc.txt"),) + snapshot.files)

        with caplog.at_level(logging.WARNING, logger="quickopen.ranker"):
            results = ResultRanker().rank("abc", snapshot)

        assert _paths(results) == ["abc.txt"]
        assert "elsewhere" in caplog.text

    def test_malformed_name_is_unmatched(self, make_snapshot):
        snapshot = make_snapshot("ab\udcffc.txt")
        assert ResultRanker(filter_mode="none").rank("abc", snapshot) == []

    def test_deterministic(self, make_snapshot):
        snapshot = make_snapshot("fuzzyMatch.py", "fuzzy_match.py", "zfuzzymatch.py")
        ranker = ResultRanker()
        assert ranker.rank("fm", snapshot) == ranker.rank("fm", snapshot)

    def test_exhaustive_mode(self, make_snapshot):
        results = ResultRanker(exhaustive=True).rank("ab", make_snapshot("ab_xxxxab"))
        assert results[0].score == 115
        assert results[0].window == MatchWindow(0, 2)

    @pytest.mark.parametrize(
        "kwargs",
        [{"match_on": "content"}, {"case": "loud"}, {"filter_mode": "median"}],
    )
    def test_invalid_options(self, kwargs):
        with pytest.raises(ValueError):
            ResultRanker(**kwargs)


class TestQuickOpen:
    """Tests for the QuickOpen facade."""

    def test_find(self, workspace: Path):
        qo = QuickOpen()
        results = qo.find(workspace / "src" / "fuzzy_match.py", "fm")

        assert _paths(results) == ["src/fuzzy_match.py", "tests/test_fuzzy_match.py"]
        assert [r.score for r in results] == [50, 50]
        assert results[0].window == MatchWindow(0, 7)
        assert results[1].window == MatchWindow(5, 12)
        assert qo.root == workspace

    def test_query_before_open(self):
        with pytest.raises(QuickOpenError):
            QuickOpen().query("abc")

    def test_state_transitions(self, workspace: Path, tmp_path: Path):
        qo = QuickOpen()
        assert qo.state is State.IDLE

        qo.open(workspace / "setup.py")
        assert qo.state is State.INDEXED

        qo.query("fm")
        assert qo.state is State.RESULTS_READY
        assert qo.results

        # same root: results stay available
        qo.open(workspace / "docs" / "guide.md")
        assert qo.state is State.RESULTS_READY

        other = tmp_path.resolve() / "other"
        (other / ".git").mkdir(parents=True)
        (other / "main.rs").write_text("")
        qo.open(other / "main.rs")
        assert qo.state is State.INDEXED
        assert qo.results == []

    def test_background_root_change_clears_results(self, workspace: Path, tmp_path: Path):
        qo = QuickOpen(indexer=WorkspaceIndexer(background=True))
        try:
            qo.open(workspace / "setup.py")
            qo.indexer.wait(timeout=10)
            qo.query("fm")
            assert qo.state is State.RESULTS_READY

            other = tmp_path.resolve() / "other"
            (other / ".git").mkdir(parents=True)
            (other / "main.rs").write_text("")
            qo.open(other / "main.rs")
            qo.indexer.wait(timeout=10)

            assert qo.root == other
            assert qo.state is State.INDEXED
            assert qo.results == []
        finally:
            qo.close()

    def test_empty_query(self, workspace: Path):
        assert QuickOpen().find(workspace / "setup.py", "") == []

    def test_from_settings(self, workspace: Path):
        settings = Settings()
        settings.match.match_on = "path"
        settings.match.limit = 1

        qo = QuickOpen.from_settings(settings)
        results = qo.find(workspace / "setup.py", "srcfm")

        assert _paths(results) == ["src/fuzzy_match.py"]
        assert qo.ranker.match_on == "path"
