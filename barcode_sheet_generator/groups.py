"""
Group state: edit commands, the reducer, and export eligibility.

Groups are frozen dataclasses held in a tuple. Every edit returns a new
tuple, so a render pass always sees the snapshot it was handed.
"""

# Standard Library
import dataclasses
import json
import pathlib

# local repo modules
import barcode_sheet_generator as bsg
import barcode_sheet_generator.config


Group = bsg.config.Group

STATE_UNVALIDATED = bsg.config.STATE_UNVALIDATED
STATE_PENDING = bsg.config.STATE_PENDING
STATE_VALID = bsg.config.STATE_VALID
STATE_INVALID = bsg.config.STATE_INVALID
DEFAULT_REPEAT_X = bsg.config.DEFAULT_REPEAT_X
DEFAULT_REPEAT_Y = bsg.config.DEFAULT_REPEAT_Y
DEFAULT_FIRST_MARGIN_IN = bsg.config.DEFAULT_FIRST_MARGIN_IN
DEFAULT_MARGIN_IN = bsg.config.DEFAULT_MARGIN_IN


@dataclasses.dataclass(frozen=True)
class AddGroup:
	image_ref: str = ""


@dataclasses.dataclass(frozen=True)
class RemoveGroup:
	group_id: int


@dataclasses.dataclass(frozen=True)
class SetImageRef:
	group_id: int
	image_ref: str


@dataclasses.dataclass(frozen=True)
class SetTitle:
	group_id: int
	title: str


@dataclasses.dataclass(frozen=True)
class SetRepeatX:
	group_id: int
	count: int


@dataclasses.dataclass(frozen=True)
class SetRepeatY:
	group_id: int
	count: int


@dataclasses.dataclass(frozen=True)
class SetMarginTop:
	group_id: int
	inches: float


@dataclasses.dataclass(frozen=True)
class MarkPending:
	group_id: int
	image_ref: str


@dataclasses.dataclass(frozen=True)
class ApplyResolution:
	group_id: int
	image_ref: str
	resolved_url: str = ""
	error: str | None = None


EditCommand = (
	AddGroup | RemoveGroup | SetImageRef | SetTitle | SetRepeatX
	| SetRepeatY | SetMarginTop | MarkPending | ApplyResolution
)


#============================================
def new_group(groups: tuple[Group, ...], image_ref: str = "") -> Group:
	"""
	Create a group with lifecycle defaults.

	The first group sits at the top of the page; later groups get a small
	default margin.

	Args:
		groups: Current groups, used for the id and margin default.
		image_ref: Initial reference.

	Returns:
		New Group.
	"""
	next_id = max((group.group_id for group in groups), default=0) + 1
	margin = DEFAULT_FIRST_MARGIN_IN if not groups else DEFAULT_MARGIN_IN
	return Group(
		group_id=next_id,
		image_ref=image_ref,
		repeat_x=DEFAULT_REPEAT_X,
		repeat_y=DEFAULT_REPEAT_Y,
		margin_top_in=margin,
	)


#============================================
def clamp_count(value: int) -> int:
	return max(0, int(value))


#============================================
def clamp_margin(value: float) -> float:
	return max(0.0, float(value))


#============================================
def update_group(groups: tuple[Group, ...], group_id: int, **changes) -> tuple[Group, ...]:
	"""
	Replace one group's fields by id.

	Args:
		groups: Current groups.
		group_id: Target group id.
		changes: Field values to replace.

	Returns:
		New groups tuple; unchanged when the id is unknown.
	"""
	return tuple(
		dataclasses.replace(group, **changes) if group.group_id == group_id else group
		for group in groups
	)


#============================================
def find_group(groups: tuple[Group, ...], group_id: int) -> Group | None:
	for group in groups:
		if group.group_id == group_id:
			return group
	return None


#============================================
def apply_edit(groups: tuple[Group, ...], command: EditCommand) -> tuple[Group, ...]:
	"""
	Apply one edit command and return the new groups tuple.

	Resolution commands carry the image_ref they were issued for and are
	dropped when the group has since been edited or removed. A result is
	only applied to a pending group.

	Args:
		groups: Current groups.
		command: Edit command.

	Returns:
		New groups tuple.
	"""
	if isinstance(command, AddGroup):
		return groups + (new_group(groups, command.image_ref),)
	if isinstance(command, RemoveGroup):
		return tuple(group for group in groups if group.group_id != command.group_id)
	if isinstance(command, SetImageRef):
		return update_group(
			groups,
			command.group_id,
			image_ref=command.image_ref,
			resolved_url="",
			validation_state=STATE_UNVALIDATED,
		)
	if isinstance(command, SetTitle):
		return update_group(groups, command.group_id, title=command.title)
	if isinstance(command, SetRepeatX):
		return update_group(groups, command.group_id, repeat_x=clamp_count(command.count))
	if isinstance(command, SetRepeatY):
		return update_group(groups, command.group_id, repeat_y=clamp_count(command.count))
	if isinstance(command, SetMarginTop):
		return update_group(groups, command.group_id, margin_top_in=clamp_margin(command.inches))

	if isinstance(command, (MarkPending, ApplyResolution)):
		target = find_group(groups, command.group_id)
		if target is None or target.image_ref != command.image_ref:
			return groups
		if isinstance(command, MarkPending):
			return update_group(groups, command.group_id, validation_state=STATE_PENDING, resolved_url="")
		if target.validation_state != STATE_PENDING:
			return groups
		if command.error is not None or not command.resolved_url:
			return update_group(groups, command.group_id, validation_state=STATE_INVALID, resolved_url="")
		return update_group(
			groups,
			command.group_id,
			validation_state=STATE_VALID,
			resolved_url=command.resolved_url,
		)
	raise TypeError(f"Unknown edit command: {command!r}")


#============================================
def export_blockers(groups: tuple[Group, ...]) -> list[str]:
	"""
	List the reasons the sheet cannot be exported.

	Args:
		groups: Current groups.

	Returns:
		Human-readable reasons; empty when export is allowed.
	"""
	if not groups:
		return ["No barcode groups."]
	reasons: list[str] = []
	for index, group in enumerate(groups, start=1):
		if group.validation_state != STATE_VALID or not group.resolved_url:
			reasons.append(f"Group {index}: barcode is {group.validation_state}.")
		if group.repeat_x <= 0 or group.repeat_y <= 0:
			reasons.append(f"Group {index}: repeat counts must be positive.")
	return reasons


#============================================
def can_export(groups: tuple[Group, ...]) -> bool:
	return not export_blockers(groups)


#============================================
def load_sheet_file(path: pathlib.Path) -> tuple[Group, ...]:
	"""
	Load groups from a JSON sheet description.

	Args:
		path: JSON path with a "groups" list.

	Returns:
		Groups tuple, all unvalidated.
	"""
	data = json.loads(path.read_text(encoding="utf-8"))
	entries = data.get("groups", []) if isinstance(data, dict) else data
	if not isinstance(entries, list):
		raise ValueError(f"{path}: 'groups' must be a list")
	groups: tuple[Group, ...] = ()
	for entry in entries:
		if not isinstance(entry, dict):
			raise ValueError(f"{path}: group entries must be objects")
		groups = apply_edit(groups, AddGroup(image_ref=str(entry.get("image", ""))))
		group_id = groups[-1].group_id
		if "title" in entry:
			groups = apply_edit(groups, SetTitle(group_id, str(entry["title"])))
		if "repeat_x" in entry:
			groups = apply_edit(groups, SetRepeatX(group_id, int(entry["repeat_x"])))
		if "repeat_y" in entry:
			groups = apply_edit(groups, SetRepeatY(group_id, int(entry["repeat_y"])))
		if "margin_top_in" in entry:
			groups = apply_edit(groups, SetMarginTop(group_id, float(entry["margin_top_in"])))
	return groups
