"""
Interactive sheet session: edits, debounced validation and preview, export.
"""

# Standard Library
import asyncio

# local repo modules
import barcode_sheet_generator as bsg
import barcode_sheet_generator.config
import barcode_sheet_generator.debounce
import barcode_sheet_generator.errors
import barcode_sheet_generator.export
import barcode_sheet_generator.groups
import barcode_sheet_generator.layout
import barcode_sheet_generator.render_target
import barcode_sheet_generator.resolver


Group = bsg.config.Group
PageLayout = bsg.config.PageLayout
Resolver = bsg.resolver.Resolver
Debouncer = bsg.debounce.Debouncer
ResolutionError = bsg.errors.ResolutionError
LayoutError = bsg.errors.LayoutError
ExportError = bsg.errors.ExportError
ExportNotAllowedError = bsg.errors.ExportNotAllowedError

STATE_UNVALIDATED = bsg.config.STATE_UNVALIDATED
MODE_PREVIEW = bsg.config.MODE_PREVIEW
DEFAULT_PREVIEW_BOX = bsg.config.DEFAULT_PREVIEW_BOX
DEFAULT_DEVICE_PIXEL_RATIO = bsg.config.DEFAULT_DEVICE_PIXEL_RATIO
VALIDATION_DEBOUNCE_SECONDS = bsg.config.VALIDATION_DEBOUNCE_SECONDS
RENDER_DEBOUNCE_SECONDS = bsg.config.RENDER_DEBOUNCE_SECONDS


class SheetSession:
	"""
	Owns the group snapshot and drives validation, preview and export.

	The groups tuple is only ever replaced, never mutated. Every async step
	reads the current tuple when it starts and writes back through the
	reducer, so late resolution results cannot clobber newer edits.

	Args:
		resolver: Resolver for image references.
		loader: Async image loader for render passes.
		groups: Initial groups; one empty group when omitted.
		preview_box: Preview box (width, height) in display units.
		device_pixel_ratio: Physical pixels per display unit.
		validation_delay: Quiet period before validation, in seconds.
		render_delay: Quiet period before a preview render, in seconds.
		verbose: Print validation failures.
	"""

	def __init__(
		self,
		resolver: Resolver,
		loader: bsg.layout.Loader | None = None,
		groups: tuple[Group, ...] | None = None,
		preview_box: tuple[float, float] = DEFAULT_PREVIEW_BOX,
		device_pixel_ratio: float = DEFAULT_DEVICE_PIXEL_RATIO,
		validation_delay: float = VALIDATION_DEBOUNCE_SECONDS,
		render_delay: float = RENDER_DEBOUNCE_SECONDS,
		verbose: bool = False,
	):
		self.resolver = resolver
		self.loader = loader
		if groups is None:
			groups = (bsg.groups.new_group(()),)
		self.groups = groups
		self.preview_box = preview_box
		self.device_pixel_ratio = device_pixel_ratio
		self.verbose = verbose
		self.error: str | None = None
		self.last_layout: PageLayout | None = None
		self.exporting = False
		self.surface = bsg.render_target.prepare_surface(
			MODE_PREVIEW,
			box=preview_box,
			device_pixel_ratio=device_pixel_ratio,
		)
		self.validation = Debouncer(validation_delay, self.validate)
		self.preview = Debouncer(render_delay, self.render_preview)

	@property
	def export_enabled(self) -> bool:
		return not self.exporting and bsg.groups.can_export(self.groups)

	#============================================
	def dispatch(self, command: bsg.groups.EditCommand) -> None:
		"""
		Apply an edit and schedule follow-up work.

		Image reference changes restart the validation timer; every edit
		restarts the preview timer. Must be called from a running event loop.

		Args:
			command: Edit command.
		"""
		self.groups = bsg.groups.apply_edit(self.groups, command)
		if isinstance(command, (bsg.groups.SetImageRef, bsg.groups.AddGroup)):
			self.validation.trigger()
		self.preview.trigger()

	def set_preview_box(self, box: tuple[float, float], device_pixel_ratio: float | None = None) -> None:
		self.preview_box = box
		if device_pixel_ratio is not None:
			self.device_pixel_ratio = device_pixel_ratio
		self.preview.trigger()

	#============================================
	async def resolve_group(self, group_id: int, image_ref: str) -> None:
		"""
		Resolve one group's reference and apply the result by identity.

		Args:
			group_id: Group id.
			image_ref: The reference this request is for.
		"""
		try:
			url = await self.resolver.resolve(image_ref)
			command = bsg.groups.ApplyResolution(group_id, image_ref, resolved_url=url)
		except ResolutionError as error:
			if self.verbose:
				print(f"Validation error: {error}")
			command = bsg.groups.ApplyResolution(group_id, image_ref, error=str(error))
		before = self.groups
		self.groups = bsg.groups.apply_edit(self.groups, command)
		if self.groups is not before:
			self.preview.trigger()

	#============================================
	async def validate(self) -> None:
		"""
		Resolve every unvalidated group with a non-empty reference.
		"""
		targets = [
			(group.group_id, group.image_ref)
			for group in self.groups
			if group.validation_state == STATE_UNVALIDATED and group.image_ref.strip()
		]
		for group_id, image_ref in targets:
			self.groups = bsg.groups.apply_edit(
				self.groups,
				bsg.groups.MarkPending(group_id, image_ref),
			)
		await asyncio.gather(
			*(self.resolve_group(group_id, image_ref) for group_id, image_ref in targets)
		)

	#============================================
	async def render_preview(self) -> PageLayout | None:
		"""
		Render the current snapshot into the preview surface.

		Returns:
			PageLayout on success, None on failure (see self.error).
		"""
		snapshot = self.groups
		self.surface = bsg.render_target.prepare_surface(
			MODE_PREVIEW,
			self.surface,
			self.preview_box,
			self.device_pixel_ratio,
		)
		try:
			layout = await bsg.layout.render(snapshot, self.surface, self.loader)
		except LayoutError as error:
			self.error = str(error)
			self.last_layout = None
			return None
		self.error = None
		self.last_layout = layout
		return layout

	#============================================
	async def export(self) -> bytes:
		"""
		Export the current snapshot as PNG bytes.

		Returns:
			PNG bytes at full page resolution.
		"""
		if self.exporting:
			raise ExportNotAllowedError("An export is already in progress.")
		blockers = bsg.groups.export_blockers(self.groups)
		if blockers:
			raise ExportNotAllowedError(" ".join(blockers))
		self.exporting = True
		self.error = None
		try:
			result = await bsg.export.export_page(self.groups, self.loader)
		except (LayoutError, ExportError) as error:
			self.error = str(error)
			raise
		finally:
			self.exporting = False
		return result.png_bytes

	async def settle(self) -> None:
		"""
		Wait until pending validation and preview runs are done.
		"""
		while self.validation.pending or self.preview.pending:
			await self.validation.wait()
			await self.preview.wait()
