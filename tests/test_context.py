"""Tests for the form state holder."""
import pytest

from common.errors import ValidationError
from session.context import ScreeningContext
from session.models import EmotionResult, Observation, Page, parse_age

from conftest import ALEX


@pytest.fixture
def filled():
    ctx = ScreeningContext()
    ctx.update_fields(ALEX)
    return ctx


class TestUpdateField:

    def test_sets_one_field(self):
        ctx = ScreeningContext()
        ctx.update_field("childName", "Alex")
        assert ctx.form["childName"] == "Alex"
        assert ctx.form["childAge"] == ""

    def test_unknown_field_rejected(self):
        ctx = ScreeningContext()
        with pytest.raises(ValidationError):
            ctx.update_field("favouriteColour", "blue")

    def test_update_fields_ignores_extra_keys(self):
        ctx = ScreeningContext()
        ctx.update_fields({"childName": "Sam", "csrf": "x"})
        assert ctx.form["childName"] == "Sam"
        assert "csrf" not in ctx.form


class TestIsComplete:

    def test_empty_form_is_incomplete(self):
        assert not ScreeningContext().is_complete()

    def test_filled_form_is_complete(self, filled):
        assert filled.is_complete()

    @pytest.mark.parametrize("field", list(ALEX))
    def test_each_missing_field_makes_it_incomplete(self, filled, field):
        filled.update_field(field, "  ")
        assert not filled.is_complete()
        assert field in filled.missing_fields()

    @pytest.mark.parametrize("age", ["0", "-2", "five"])
    def test_age_must_be_positive_number(self, filled, age):
        filled.update_field("childAge", age)
        assert not filled.is_complete()

    def test_observation_requires_completeness(self):
        with pytest.raises(ValidationError) as exc:
            ScreeningContext().observation()
        assert "childName" in exc.value.missing

    def test_observation_is_frozen(self, filled):
        observation = filled.observation()
        assert isinstance(observation, Observation)
        assert observation.child_age == 5
        with pytest.raises(AttributeError):
            observation.child_name = "Other"


class TestReset:

    def test_reset_clears_everything(self, filled):
        filled.page = Page.RESULTS
        filled.analysis = {"therapyGoals": ["a"], "suggestedActivities": ["b"], "emotionData": {}}
        filled.emotion = EmotionResult(primary_emotion="happy", confidence=80)
        filled.error = "boom"

        filled.reset()

        assert filled.page == Page.FORM
        assert all(value == "" for value in filled.form.values())
        assert filled.analysis is None
        assert filled.emotion is None
        assert filled.error is None


class TestSnapshot:

    def test_snapshot_is_read_only(self, filled):
        filled.analysis = {"therapyGoals": ["a"]}
        view = filled.snapshot()

        with pytest.raises(TypeError):
            view.form["childName"] = "Changed"
        with pytest.raises(TypeError):
            view.analysis["therapyGoals"] = []

    def test_form_locked_while_loading(self, filled):
        filled.loading = True
        filled.update_field("childName", "Jordan")
        assert filled.form["childName"] == "Alex"

    def test_form_locked_on_results_page(self, filled):
        filled.page = Page.RESULTS
        filled.update_fields({"childName": "Jordan"})
        assert filled.form["childName"] == "Alex"

    def test_snapshot_does_not_follow_later_changes(self, filled):
        view = filled.snapshot()
        filled.update_field("childName", "Jordan")
        assert view.form["childName"] == "Alex"


class TestParseAge:

    def test_whole_number_becomes_int(self):
        assert parse_age("5") == 5
        assert isinstance(parse_age("5.0"), int)

    def test_fraction_kept(self):
        assert parse_age("4.5") == 4.5

    def test_rejects_non_positive_and_text(self):
        assert parse_age("0") is None
        assert parse_age("abc") is None
        assert parse_age(None) is None
        assert parse_age(True) is None
