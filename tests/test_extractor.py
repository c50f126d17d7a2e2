"""Tests for extractor.py — review, preset, and inline candidates."""

from datetime import datetime, timedelta, timezone

from vault_nudge.extractor import InlineLine, PresetOffset, Review, extract, task_text
from vault_nudge.notes import Note
from vault_nudge.settings import ReminderPreset, Settings

UTC = timezone.utc
D = datetime(2025, 12, 25, tzinfo=UTC)


def _note(text, path="Bills/rent.md"):
    return Note.from_text(path, text)


def test_review_candidate():
    note = _note("---\nreview_date: 2025-12-25 10:00\npriority: High\n---\n")

    [c] = extract(note, Settings(), UTC)

    assert c.kind == Review()
    assert c.trigger == datetime(2025, 12, 25, 10, 0, tzinfo=UTC)
    assert c.allowed_fields == frozenset({"priority", "type"})
    assert c.data["priority"] == "High"
    assert c.identity == f"Bills/rent.md::review::{int(c.trigger.timestamp() * 1000)}"
    assert c.render() == "📅 Reminder: rent\nPlease review this note."


def test_review_absent_or_empty_emits_nothing():
    assert extract(_note("---\npriority: High\n---\n"), Settings(), UTC) == []
    assert extract(_note("---\nreview_date:\n---\n"), Settings(), UTC) == []
    assert extract(_note('---\nreview_date: ""\n---\n'), Settings(), UTC) == []


def test_review_invalid_date_emits_nothing():
    assert extract(_note("---\nreview_date: next friday\n---\n"), Settings(), UTC) == []


def test_preset_expands_each_offset():
    settings = Settings(presets=[ReminderPreset(name="finance", offsets=["-7d", "0m", "1d"])])
    note = _note("---\ndue_date: 2025-12-25\nreminder_preset: finance\n---\n")

    candidates = extract(note, settings, UTC)

    assert [c.kind for c in candidates] == [
        PresetOffset("finance", "-7d"),
        PresetOffset("finance", "0m"),
        PresetOffset("finance", "1d"),
    ]
    assert [c.trigger for c in candidates] == [D - timedelta(days=7), D, D + timedelta(days=1)]
    assert len({c.identity for c in candidates}) == 3
    assert candidates[0].identity.startswith("Bills/rent.md::preset:finance:-7d::")


def test_preset_renders_own_template_with_preset_fields():
    settings = Settings(
        presets=[ReminderPreset("finance", ["-7d"], "Pay {filename} {payment_sum} ({offset}) {priority}")]
    )
    note = _note("---\ndue_date: 2025-12-25\nreminder_preset: finance\npayment_sum: 120\npriority: High\n---\n")

    [c] = extract(note, settings, UTC)

    assert c.render() == "Pay rent 120 (-7d) {priority}"


def test_preset_without_template_uses_default():
    settings = Settings(presets=[ReminderPreset("rent", ["0m"])])
    note = _note("---\ndue_date: 2025-12-25\nreminder_preset: rent\n---\n")

    [c] = extract(note, settings, UTC)

    assert c.render() == "🔔 Reminder: rent"


def test_preset_requires_both_fields_and_exact_name():
    settings = Settings()

    assert extract(_note("---\ndue_date: 2025-12-25\n---\n"), settings, UTC) == []
    assert extract(_note("---\nreminder_preset: finance\n---\n"), settings, UTC) == []
    assert extract(_note("---\ndue_date: 2025-12-25\nreminder_preset: Finance\n---\n"), settings, UTC) == []
    assert extract(_note("---\ndue_date: soon\nreminder_preset: finance\n---\n"), settings, UTC) == []


def test_preset_bad_offset_falls_back_to_base():
    settings = Settings(presets=[ReminderPreset("p", ["oops"])])
    note = _note("---\ndue_date: 2025-12-25\nreminder_preset: p\n---\n")

    [c] = extract(note, settings, UTC)

    assert c.trigger == D


def test_inline_task_candidate():
    note = _note("# Todo\n- [ ] Call the bank [check:: 2025-12-20 09:30] today\n- [x] Done [check:: 2025-12-01]")

    [c] = extract(note, Settings(), UTC)

    assert c.kind == InlineLine(1)
    assert c.trigger == datetime(2025, 12, 20, 9, 30, tzinfo=UTC)
    assert c.data == {"task": "Call the bank  today"}
    assert c.render() == "✅ Task: Call the bank  today\nFrom note: rent"
    assert c.identity.startswith("Bills/rent.md::inline:1::")


def test_inline_tag_is_case_insensitive():
    note = _note("- [ ] Renew passport [CHECK::2025-12-20]")

    [c] = extract(note, Settings(), UTC)

    assert c.data == {"task": "Renew passport"}
    assert c.trigger == datetime(2025, 12, 20, tzinfo=UTC)


def test_inline_requires_unchecked_box_and_tag():
    lines = "\n".join(
        [
            "- [x] Checked [check:: 2025-12-20]",
            "- [X] Checked upper [check:: 2025-12-20]",
            "- [ ] No tag here",
            "[check:: 2025-12-20] without box",
            "- [ ] Bad date [check:: someday]",
        ]
    )

    assert extract(_note(lines), Settings(), UTC) == []


def test_inline_line_index_counts_frontmatter_lines():
    note = _note("---\npriority: High\n---\n- [ ] Task [check:: 2025-12-20]")

    [c] = extract(note, Settings(), UTC)

    assert c.kind == InlineLine(3)


def test_all_sources_combine():
    note = _note(
        "---\nreview_date: 2025-12-01\ndue_date: 2025-12-25\nreminder_preset: finance\n---\n"
        "- [ ] One [check:: 2025-12-02]\n"
        "- [ ] Two [check:: 2025-12-03]\n"
    )

    kinds = [c.kind.tag for c in extract(note, Settings(), UTC)]

    assert kinds == ["review", "preset:finance:-7d", "preset:finance:0m", "inline:5", "inline:6"]


def test_identity_is_stable_across_extractions():
    text = "---\nreview_date: 2025-12-01\n---\n- [ ] One [check:: 2025-12-02]"

    first = [c.identity for c in extract(_note(text), Settings(), UTC)]
    second = [c.identity for c in extract(_note(text), Settings(), UTC)]

    assert first == second


def test_task_text_strips_marker_and_tag():
    assert task_text("  - [ ] Pay rent [check:: 2025-12-20]  ") == "Pay rent"
