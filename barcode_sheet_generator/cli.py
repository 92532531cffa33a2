"""
CLI entry points for A4 barcode sheet generation.
"""

# Standard Library
import argparse
import asyncio
import pathlib
import time

# PIP3 modules
import httpx

# local repo modules
import barcode_sheet_generator as bsg
import barcode_sheet_generator.config
import barcode_sheet_generator.errors
import barcode_sheet_generator.export
import barcode_sheet_generator.groups
import barcode_sheet_generator.image_loader
import barcode_sheet_generator.resolver
import barcode_sheet_generator.session


SheetSession = bsg.session.SheetSession
LayoutError = bsg.errors.LayoutError
ExportError = bsg.errors.ExportError

EXPORT_FILENAME = bsg.config.EXPORT_FILENAME
DEFAULT_PREVIEW_BOX = bsg.config.DEFAULT_PREVIEW_BOX
DEFAULT_DEVICE_PIXEL_RATIO = bsg.config.DEFAULT_DEVICE_PIXEL_RATIO
HTTP_TIMEOUT_SECONDS = bsg.config.HTTP_TIMEOUT_SECONDS


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Args:
		argv: Argument list, defaults to sys.argv.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Lay out repeated barcode images on an A4 300 DPI sheet.")
	parser.add_argument("sheet", help="Sheet description JSON file.")

	output_group = parser.add_argument_group("Output")
	output_group.add_argument("-o", "--output", dest="output_path", default=EXPORT_FILENAME, help="Output PNG path.")
	output_group.add_argument("-m", "--manifest", dest="manifest_path", default=None, help="Output manifest JSON path.")
	output_group.add_argument("-f", "--pdf", dest="write_pdf", action="store_true", help="Also write an A4 PDF.")
	output_group.add_argument("-F", "--no-pdf", dest="write_pdf", action="store_false", help="Skip the PDF.")

	resolver_group = parser.add_argument_group("Resolver")
	resolver_group.add_argument(
		"-r",
		"--resolver-url",
		dest="resolver_url",
		default=None,
		help="Lookup service root for barcode numbers.",
	)

	preview_group = parser.add_argument_group("Preview")
	preview_group.add_argument("-p", "--preview", dest="preview_path", default=None, help="Write a preview PNG.")
	preview_group.add_argument(
		"--preview-size",
		dest="preview_size",
		default=f"{DEFAULT_PREVIEW_BOX[0]}x{DEFAULT_PREVIEW_BOX[1]}",
		help="Preview box as WIDTHxHEIGHT.",
	)
	preview_group.add_argument(
		"--dpr",
		dest="device_pixel_ratio",
		type=float,
		default=DEFAULT_DEVICE_PIXEL_RATIO,
		help="Device pixel ratio for the preview.",
	)

	parser.set_defaults(write_pdf=False)

	args = parser.parse_args(argv)
	return args


#============================================
def parse_box(value: str) -> tuple[float, float]:
	"""
	Parse a WIDTHxHEIGHT string.

	Args:
		value: Size string like "600x848".

	Returns:
		Tuple of (width, height).
	"""
	parts = value.lower().split("x")
	if len(parts) != 2:
		raise ValueError(f"Expected WIDTHxHEIGHT, got '{value}'")
	return (float(parts[0]), float(parts[1]))


#============================================
def print_group_status(groups: tuple[bsg.config.Group, ...]) -> None:
	"""
	Print one status line per group.

	Args:
		groups: Groups after validation.
	"""
	for index, group in enumerate(groups, start=1):
		title = f" '{group.title}'" if group.title else ""
		print(
			f"Group {index}{title}: {group.image_ref or '(empty)'} -> "
			f"{group.validation_state} {group.repeat_x}x{group.repeat_y} "
			f"margin={group.margin_top_in:.2f}in"
		)


#============================================
async def run_pipeline_async(args: argparse.Namespace) -> int:
	"""
	Resolve, preview and export a sheet.

	Args:
		args: Parsed argparse namespace.

	Returns:
		Process exit status.
	"""
	start_time = time.perf_counter()
	sheet_path = pathlib.Path(args.sheet)
	groups = bsg.groups.load_sheet_file(sheet_path)
	print(f"Groups loaded: {len(groups)}")

	preview_box = parse_box(args.preview_size)
	async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS, follow_redirects=True) as client:
		resolver = bsg.resolver.Resolver(args.resolver_url, client)
		loader = bsg.image_loader.make_loader(client)
		session = SheetSession(
			resolver,
			loader,
			groups=groups,
			preview_box=preview_box,
			device_pixel_ratio=args.device_pixel_ratio,
			render_delay=0.0,
			verbose=True,
		)

		resolve_start = time.perf_counter()
		await session.validate()
		await session.settle()
		resolve_end = time.perf_counter()
		print_group_status(session.groups)

		if args.preview_path:
			await session.render_preview()
			preview_path = pathlib.Path(args.preview_path)
			session.surface.image.save(preview_path, format="PNG")
			print(f"Preview written: {preview_path}")
			if session.error:
				print(f"Preview error: {session.error}")

		blockers = bsg.groups.export_blockers(session.groups)
		if blockers:
			print("Export disabled:")
			for reason in blockers:
				print(f"- {reason}")
			return 1

		render_start = time.perf_counter()
		try:
			result = await bsg.export.export_page(session.groups, loader, verbose=True)
		except (LayoutError, ExportError) as error:
			print(f"Export failed: {error}")
			return 1
		render_end = time.perf_counter()

	output_path = bsg.export.write_export(result.png_bytes, pathlib.Path(args.output_path))
	print(f"PNG written: {output_path}")
	if args.write_pdf:
		pdf_path = output_path.with_suffix(".pdf")
		bsg.export.write_export(bsg.export.export_pdf(result.png_bytes), pdf_path)
		print(f"PDF written: {pdf_path}")

	manifest_path = args.manifest_path
	if manifest_path is not None:
		bsg.export.write_manifest(pathlib.Path(manifest_path), session.groups, result.layout, output_path)
		print(f"Manifest written: {manifest_path}")

	total_time = time.perf_counter() - start_time
	print(
		"Timing: resolve={:.2f}s render={:.2f}s total={:.2f}s".format(
			resolve_end - resolve_start,
			render_end - render_start,
			total_time,
		)
	)
	return 0


#============================================
def run_pipeline(args: argparse.Namespace) -> int:
	"""
	Run the full pipeline from sheet file to exported page.

	Args:
		args: Parsed argparse namespace.

	Returns:
		Process exit status.
	"""
	print("A4 barcode sheet pipeline")
	print(f"Sheet: {args.sheet}")
	print(f"Output PNG: {args.output_path}")
	if args.resolver_url:
		print(f"Resolver: {args.resolver_url}")
	if args.manifest_path:
		print(f"Manifest: {args.manifest_path}")
	print(f"Write PDF: {args.write_pdf}")
	return asyncio.run(run_pipeline_async(args))


#============================================
def main() -> None:
	"""
	Main entry point.
	"""
	args = parse_args()
	status = run_pipeline(args)
	if status != 0:
		raise SystemExit(status)
