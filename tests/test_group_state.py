import json
import pathlib

import pytest

import barcode_sheet_generator.config
import barcode_sheet_generator.groups


config = barcode_sheet_generator.config
groups_module = barcode_sheet_generator.groups
apply_edit = groups_module.apply_edit


#============================================
def build_valid_group(group_id: int = 1, **changes) -> config.Group:
	fields = {
		"image_ref": "1",
		"resolved_url": "https://cdn.example/1.png",
		"validation_state": config.STATE_VALID,
	}
	fields.update(changes)
	return config.Group(group_id=group_id, **fields)


#============================================
def test_new_groups_get_lifecycle_defaults() -> None:
	"""
	First group has no margin, later groups a small one, all 5x10.
	"""
	groups = apply_edit((), groups_module.AddGroup())
	groups = apply_edit(groups, groups_module.AddGroup(image_ref="7"))
	first, second = groups
	assert (first.repeat_x, first.repeat_y) == (5, 10)
	assert first.margin_top_in == 0.0
	assert second.margin_top_in == 0.1
	assert second.image_ref == "7"
	assert first.group_id != second.group_id
	assert second.validation_state == config.STATE_UNVALIDATED


#============================================
def test_edits_return_new_tuples() -> None:
	"""
	The reducer never mutates the snapshot it was given.
	"""
	before = (build_valid_group(),)
	after = apply_edit(before, groups_module.SetTitle(1, "Batch A"))
	assert before[0].title == ""
	assert after[0].title == "Batch A"
	assert after is not before


#============================================
def test_set_image_ref_always_resets_validation() -> None:
	"""
	Any reference change clears the URL, whatever the prior state.
	"""
	for state in (config.STATE_VALID, config.STATE_INVALID, config.STATE_PENDING):
		groups = (build_valid_group(validation_state=state),)
		groups = apply_edit(groups, groups_module.SetImageRef(1, "2"))
		assert groups[0].image_ref == "2"
		assert groups[0].resolved_url == ""
		assert groups[0].validation_state == config.STATE_UNVALIDATED


#============================================
def test_numeric_edits_clamp() -> None:
	groups = (build_valid_group(),)
	groups = apply_edit(groups, groups_module.SetRepeatX(1, -3))
	groups = apply_edit(groups, groups_module.SetRepeatY(1, 12))
	groups = apply_edit(groups, groups_module.SetMarginTop(1, -0.5))
	assert groups[0].repeat_x == 0
	assert groups[0].repeat_y == 12
	assert groups[0].margin_top_in == 0.0


#============================================
def test_remove_group_by_id() -> None:
	groups = (build_valid_group(1), build_valid_group(2), build_valid_group(3))
	groups = apply_edit(groups, groups_module.RemoveGroup(2))
	assert [group.group_id for group in groups] == [1, 3]


#============================================
def test_resolution_applies_to_pending_group() -> None:
	groups = (config.Group(group_id=1, image_ref="1"),)
	groups = apply_edit(groups, groups_module.MarkPending(1, "1"))
	assert groups[0].validation_state == config.STATE_PENDING
	groups = apply_edit(groups, groups_module.ApplyResolution(1, "1", resolved_url="https://cdn.example/1.png"))
	assert groups[0].validation_state == config.STATE_VALID
	assert groups[0].resolved_url == "https://cdn.example/1.png"


#============================================
def test_failed_resolution_marks_invalid() -> None:
	groups = (config.Group(group_id=1, image_ref="1"),)
	groups = apply_edit(groups, groups_module.MarkPending(1, "1"))
	groups = apply_edit(groups, groups_module.ApplyResolution(1, "1", error="not found"))
	assert groups[0].validation_state == config.STATE_INVALID
	assert groups[0].resolved_url == ""


#============================================
def test_stale_resolution_is_dropped() -> None:
	"""
	A result for an old reference never overwrites a newer edit.
	"""
	groups = (config.Group(group_id=1, image_ref="1"),)
	groups = apply_edit(groups, groups_module.MarkPending(1, "1"))
	groups = apply_edit(groups, groups_module.SetImageRef(1, "2"))
	groups = apply_edit(groups, groups_module.MarkPending(1, "2"))
	groups = apply_edit(groups, groups_module.ApplyResolution(1, "2", resolved_url="https://cdn.example/2.png"))
	stale = apply_edit(groups, groups_module.ApplyResolution(1, "1", resolved_url="https://cdn.example/1.png"))
	assert stale is groups
	assert stale[0].resolved_url == "https://cdn.example/2.png"

	removed = apply_edit(groups, groups_module.RemoveGroup(1))
	assert apply_edit(removed, groups_module.ApplyResolution(1, "2", error="late")) == ()


#============================================
def test_resolution_ignored_unless_pending() -> None:
	"""
	Editing back to an earlier reference does not accept its old result.
	"""
	groups = (config.Group(group_id=1, image_ref="1"),)
	groups = apply_edit(groups, groups_module.MarkPending(1, "1"))
	groups = apply_edit(groups, groups_module.SetImageRef(1, "2"))
	groups = apply_edit(groups, groups_module.SetImageRef(1, "1"))
	after = apply_edit(groups, groups_module.ApplyResolution(1, "1", resolved_url="https://cdn.example/1.png"))
	assert after[0].validation_state == config.STATE_UNVALIDATED


#============================================
def test_unknown_command_raises() -> None:
	with pytest.raises(TypeError):
		apply_edit((), "SetTitle")


#============================================
def test_export_blockers() -> None:
	"""
	Export needs at least one group and every group valid and non-empty.
	"""
	assert groups_module.export_blockers(()) == ["No barcode groups."]
	assert groups_module.can_export((build_valid_group(),))

	mixed = (build_valid_group(1), build_valid_group(2, validation_state=config.STATE_INVALID, resolved_url=""))
	assert not groups_module.can_export(mixed)
	assert len(groups_module.export_blockers(mixed)) == 1

	zero = (build_valid_group(1, repeat_x=0),)
	assert groups_module.export_blockers(zero) == ["Group 1: repeat counts must be positive."]


#============================================
def test_load_sheet_file(tmp_path: pathlib.Path) -> None:
	"""
	Sheet files become unvalidated groups with defaults filled in.
	"""
	path = tmp_path / "sheet.json"
	payload = {
		"groups": [
			{"image": "1", "title": "Batch A", "repeat_x": 4, "repeat_y": 6},
			{"image": "https://cdn.example/2.svg", "margin_top_in": 0.5},
			{"image": "3", "repeat_y": -2},
		],
	}
	path.write_text(json.dumps(payload), encoding="utf-8")
	groups = groups_module.load_sheet_file(path)
	assert len(groups) == 3
	assert groups[0].title == "Batch A"
	assert (groups[0].repeat_x, groups[0].repeat_y) == (4, 6)
	assert groups[0].margin_top_in == 0.0
	assert groups[1].margin_top_in == 0.5
	assert (groups[1].repeat_x, groups[1].repeat_y) == (5, 10)
	assert groups[2].margin_top_in == 0.1
	assert groups[2].repeat_y == 0
	assert all(group.validation_state == config.STATE_UNVALIDATED for group in groups)


#============================================
def test_load_sheet_file_rejects_bad_shape(tmp_path: pathlib.Path) -> None:
	path = tmp_path / "sheet.json"
	path.write_text(json.dumps({"groups": "nope"}), encoding="utf-8")
	with pytest.raises(ValueError):
		groups_module.load_sheet_file(path)
