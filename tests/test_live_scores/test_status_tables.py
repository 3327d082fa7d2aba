"""Tests for provider status tables."""
import enum
import logging

import pytest

from app.models import MatchStatus
from app.services.live_scores.status import (
    SPORTSDB_STATUS,
    CRICAPI_STATUS,
    SportsDbStatus,
    CricApiStatus,
    StatusTable,
    basketball_period,
)


class TestSportsDbStatus:

    @pytest.mark.parametrize("raw,expected", [
        ("Not Started", MatchStatus.SCHEDULED),
        ("In Progress", MatchStatus.LIVE),
        ("Half Time", MatchStatus.LIVE),
        ("Match Finished", MatchStatus.FINISHED),
        ("Full Time", MatchStatus.FINISHED),
        ("FT", MatchStatus.FINISHED),
        ("Match Postponed", MatchStatus.POSTPONED),
        ("CANC", MatchStatus.CANCELLED),
    ])
    def test_known_statuses(self, raw, expected):
        assert SPORTSDB_STATUS.resolve(raw) == expected

    def test_every_vocabulary_member_is_mapped(self):
        table = SPORTSDB_STATUS.recognised()
        assert set(table) == {member.value for member in SportsDbStatus}

    def test_surrounding_whitespace_is_ignored(self):
        assert SPORTSDB_STATUS.resolve("  In Progress ") == MatchStatus.LIVE

    def test_unknown_status_defaults_to_scheduled_and_warns(self, caplog):
        with caplog.at_level(logging.WARNING):
            status = SPORTSDB_STATUS.resolve("Abandoned", match_id="evt1")

        assert status == MatchStatus.SCHEDULED
        assert any("Abandoned" in r.getMessage() for r in caplog.records)

    def test_missing_status_defaults_to_scheduled(self):
        assert SPORTSDB_STATUS.resolve(None) == MatchStatus.SCHEDULED


class TestCricApiStatus:

    @pytest.mark.parametrize("raw,expected", [
        ("upcoming", MatchStatus.SCHEDULED),
        ("live", MatchStatus.LIVE),
        ("completed", MatchStatus.FINISHED),
    ])
    def test_known_statuses(self, raw, expected):
        assert CRICAPI_STATUS.resolve(raw) == expected

    def test_free_text_result_is_not_recognised(self):
        assert CRICAPI_STATUS.resolve("India won by 6 wkts") == MatchStatus.SCHEDULED

    def test_table_covers_vocabulary(self):
        assert set(CRICAPI_STATUS.recognised()) == {m.value for m in CricApiStatus}


class TestStatusTable:

    def test_incomplete_mapping_is_rejected(self):
        class Vocabulary(str, enum.Enum):
            ON = "on"
            OFF = "off"

        with pytest.raises(ValueError, match="off"):
            StatusTable(
                provider="test",
                vocabulary=Vocabulary,
                mapping={Vocabulary.ON: MatchStatus.LIVE}
            )

    def test_custom_default(self):
        class Vocabulary(str, enum.Enum):
            ON = "on"

        table = StatusTable(
            provider="test",
            vocabulary=Vocabulary,
            mapping={Vocabulary.ON: MatchStatus.LIVE},
            default=MatchStatus.POSTPONED
        )
        assert table.resolve("??") == MatchStatus.POSTPONED


class TestBasketballPeriod:

    @pytest.mark.parametrize("progress,expected", [
        ("1st Quarter", "Q1"),
        ("4th Quarter", "Q4"),
        ("Overtime", "OT"),
        ("Halftime", "Halftime"),
        ("", ""),
        (None, ""),
    ])
    def test_labels(self, progress, expected):
        assert basketball_period(progress) == expected
