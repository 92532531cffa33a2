"""
Cancellable debounce timer on asyncio.
"""

# Standard Library
import asyncio
import typing


class Debouncer:
	"""
	Run an async callback once a burst of triggers has gone quiet.

	Each trigger cancels the pending timer, if any, and starts a new one,
	so at most one run is pending at a time. A run that has already started
	its callback is not cancelled by later triggers.

	Args:
		delay: Quiet period in seconds.
		callback: Coroutine function called with no arguments.
	"""

	def __init__(self, delay: float, callback: typing.Callable[[], typing.Awaitable[None]]):
		self.delay = delay
		self.callback = callback
		self._timer: asyncio.Task | None = None
		self._running: set[asyncio.Task] = set()

	@property
	def pending(self) -> bool:
		return self._timer is not None and not self._timer.done()

	def trigger(self) -> None:
		self.cancel()
		self._timer = asyncio.get_running_loop().create_task(self._wait_then_run())

	def cancel(self) -> None:
		if self._timer is not None and not self._timer.done():
			self._timer.cancel()
		self._timer = None

	async def _wait_then_run(self) -> None:
		await asyncio.sleep(self.delay)
		# leave the timer slot before running so a trigger during the
		# callback schedules a new run instead of cancelling this one
		task = asyncio.current_task()
		if self._timer is task:
			self._timer = None
		self._running.add(task)
		try:
			await self.callback()
		finally:
			self._running.discard(task)

	async def wait(self) -> None:
		"""
		Wait for the pending timer and every started run to finish.
		"""
		while self._timer is not None or self._running:
			if self._timer is not None:
				task = self._timer
			else:
				task = next(iter(self._running))
			try:
				await task
			except asyncio.CancelledError:
				if not task.cancelled():
					raise
			if task is self._timer and task.done():
				self._timer = None
			self._running.discard(task)
