"""A fuzzing job: ties configuration, input, runner and output together."""

from __future__ import annotations

import logging
import random
import signal
import threading
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager, suppress
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from webfuzz.autocalibration import CalibrationMixin
from webfuzz.history import write_history_entry
from webfuzz.interfaces import Progress
from webfuzz.rate import RateThrottle
from webfuzz.request import Request, base_request, recursion_request, sniper_requests
from webfuzz.response import Response
from webfuzz.util import host_url_from_request, request_contains_keyword

_log = logging.getLogger(__name__)


@dataclass
class QueueJob:
    """A queued target: the URL, its recursion depth and its base request."""

    url: str
    depth: int
    req: Request


class Job(CalibrationMixin):
    """Runs the configured fuzzing over every queued target."""

    def __init__(
        self,
        config: Any,
        input_provider: Any = None,
        runner: Any = None,
        output: Any = None,
        replay_runner: Any = None,
        scraper: Any = None,
    ) -> None:
        self.config = config
        self.input = input_provider
        self.runner = runner
        self.replay_runner = replay_runner
        self.scraper = scraper
        self.output = output
        self.jobhash = ""
        self.counter = 0
        self.error_counter = 0
        self.spurious_error_counter = 0
        self.total = 0
        self.running = False
        self.running_job = False
        self.paused = False
        self.count_403 = 0
        self.count_429 = 0
        self.error = ""
        self.rate = RateThrottle(config)
        self.start_time: datetime | None = None
        self.start_time_job: datetime = datetime.now()
        self._queuejobs: list[QueueJob] = []
        self._queuepos = 0
        self._skip = False
        self._current_depth = 0
        self._error_lock = threading.Lock()
        self._queue_lock = threading.Lock()
        self._resume = threading.Event()
        self._resume.set()

    # counters

    def _inc_error(self) -> None:
        with self._error_lock:
            self.error_counter += 1
            self.spurious_error_counter += 1

    def _inc_403(self) -> None:
        with self._error_lock:
            self.count_403 += 1

    def _inc_429(self) -> None:
        with self._error_lock:
            self.count_429 += 1

    def _reset_spurious_errors(self) -> None:
        with self._error_lock:
            self.spurious_error_counter = 0

    # queue

    def delete_queue_item(self, index: int) -> None:
        """Remove a queued job, counted from the one currently running."""
        with self._queue_lock:
            del self._queuejobs[self._queuepos + index - 1]

    def queued_jobs(self) -> list[QueueJob]:
        """Return the current job followed by the jobs still waiting."""
        with self._queue_lock:
            return list(self._queuejobs[max(self._queuepos - 1, 0):])

    def _jobs_in_queue(self) -> bool:
        with self._queue_lock:
            return self._queuepos < len(self._queuejobs)

    def _enqueue(self, job: QueueJob) -> None:
        with self._queue_lock:
            self._queuejobs.append(job)

    def _prepare_queue_job(self) -> None:
        with self._queue_lock:
            current = self._queuejobs[self._queuepos]
        self.config.url = current.url
        self._current_depth = current.depth
        found = [kw for kw in self.input.keywords() if request_contains_keyword(current.req, kw)]
        self.input.activate_keywords(found)
        self._queuepos += 1
        try:
            self.jobhash = write_history_entry(self.config)
        except (OSError, ValueError) as err:
            _log.info("Could not write history entry: %s", err)
            self.jobhash = ""

    # running

    def start(self) -> None:
        """Run every queued job to completion, then finalize the output."""
        if self.start_time is None:
            self.start_time = datetime.now()

        basereq = base_request(self.config)
        if self.config.input_mode == "sniper":
            reqs = sniper_requests(basereq, self.config.input_providers[0].template)
            for req in reqs:
                self._enqueue(QueueJob(url=self.config.url, depth=0, req=req))
            self.total = self.input.total() * len(reqs)
        else:
            self._enqueue(QueueJob(url=self.config.url, depth=0, req=base_request(self.config)))
            self.total = self.input.total()

        try:
            self.running = True
            self.running_job = True
            if not self.config.quiet:
                self.output.banner()
            with self._interrupt_monitor():
                while self._jobs_in_queue():
                    self._prepare_queue_job()
                    self.reset(True)
                    self.running_job = True
                    self._start_execution()
                try:
                    self.output.finalize()
                except Exception as err:
                    self.output.error(str(err))
        finally:
            self.stop()

    def reset(self, cycle: bool) -> None:
        """Reset the counters and input position for a new job."""
        self.input.reset()
        self.counter = 0
        self._skip = False
        self.start_time_job = datetime.now()
        if cycle:
            self.output.cycle()
        else:
            self.output.reset()

    def skip_queue(self) -> None:
        """Abandon the current job and continue with the next queued one."""
        self._skip = True

    def pause(self) -> None:
        """Pause sending requests."""
        if not self.paused:
            self.paused = True
            self._resume.clear()
            self.output.info("------ PAUSING ------")

    def resume(self) -> None:
        """Resume sending requests."""
        if self.paused:
            self.paused = False
            self.output.info("------ RESUMING -----")
            self._resume.set()

    def stop(self) -> None:
        """Stop the whole process."""
        self.running = False
        self.config.context.set()

    def next(self) -> None:
        """Stop the current job and move on to the next one."""
        self.running_job = False

    @contextmanager
    def _interrupt_monitor(self) -> Iterator[None]:
        if threading.current_thread() is not threading.main_thread():
            yield
            return
        previous = {}
        for sig in (signal.SIGINT, signal.SIGTERM):
            with suppress(ValueError, OSError):
                previous[sig] = signal.signal(sig, self._on_interrupt)
        try:
            yield
        finally:
            for sig, handler in previous.items():
                with suppress(ValueError, OSError):
                    signal.signal(sig, handler)

    def _on_interrupt(self, signum: int, frame: Any) -> None:
        self.error = "Caught keyboard interrupt (Ctrl-C)\n"
        if self.paused:
            self._resume.set()
        self.stop()

    def _sleep_if_needed(self) -> None:
        delay = self.config.delay
        if not delay.has_delay:
            return
        if delay.is_range:
            seconds = delay.min + random.random() * (delay.max - delay.min)
        else:
            seconds = delay.min
        self.config.context.wait(max(seconds, 0.0))

    def _start_execution(self) -> None:
        done = threading.Event()
        background = threading.Thread(
            target=self._run_background_tasks, args=(done,), daemon=True
        )
        background.start()

        if self._queuepos > 1:
            if self.config.input_mode == "sniper":
                with self._queue_lock:
                    queue_total = len(self._queuejobs)
                self.output.info(
                    f"Starting queued sniper job ({self._queuepos} of {queue_total}) "
                    f"on target: {self.config.url}"
                )
            else:
                self.output.info(f"Starting queued job on target: {self.config.url}")

        workers = max(self.config.threads, 1)
        limiter = threading.BoundedSemaphore(workers)
        stopped = False
        job_interrupted = False
        with ThreadPoolExecutor(max_workers=workers) as pool:
            while self.input.next() and not self._skip:
                self.check_stop()
                if not self.running:
                    stopped = True
                    break
                self._resume.wait()
                limiter.acquire()
                self.rate.wait()
                inputs = dict(self.input.value())
                position = self.input.position()
                inputs["FFUFHASH"] = self._ffuf_hash(position)
                self.counter += 1
                pool.submit(self._task, inputs, position, limiter)
                if not self.running_job:
                    job_interrupted = True
                    break
        done.set()
        background.join()
        if not job_interrupted:
            self._update_progress()
        if stopped or job_interrupted:
            self.output.warning(self.error)

    def _task(self, inputs: dict[str, bytes], position: int, limiter: threading.BoundedSemaphore) -> None:
        try:
            started = datetime.now()
            self._run_task(inputs, position, False)
            self._sleep_if_needed()
            self.rate.tick(started, datetime.now())
        except Exception:
            _log.exception("Unexpected error while running a request")
        finally:
            limiter.release()

    def _run_background_tasks(self, done: threading.Event) -> None:
        total = self.input.total()
        while self.counter <= total and not self._skip:
            self._resume.wait()
            if not self.running:
                break
            self._update_progress()
            if self.counter == total or not self.running_job:
                return
            if done.wait(self.config.progress_frequency / 1000):
                return

    def _update_progress(self) -> None:
        with self._queue_lock:
            queue_total = len(self._queuejobs)
        self.output.progress(
            Progress(
                started_at=self.start_time_job,
                req_count=self.counter,
                req_total=self.input.total(),
                req_sec=self.rate.current_rate(),
                queue_pos=self._queuepos,
                queue_total=queue_total,
                error_count=self.error_counter,
            )
        )

    def is_match(self, resp: Response) -> bool:
        """Return True if the response passes the matchers and is not filtered out."""
        manager = self.config.matcher_manager
        if self.config.auto_calibration_per_host:
            filters = manager.filters_for_domain(host_url_from_request(resp.request))
        else:
            filters = manager.get_filters()

        matched = False
        for matcher in manager.get_matchers().values():
            try:
                hit = matcher.filter(resp)
            except Exception:
                continue
            if hit:
                matched = True
            elif self.config.matcher_mode == "and":
                return False
        if not matched:
            return False

        for flt in filters.values():
            try:
                hit = flt.filter(resp)
            except Exception:
                continue
            if hit:
                if self.config.filter_mode == "or":
                    return False
            elif self.config.filter_mode == "and":
                return True
        if filters and self.config.filter_mode == "and":
            return False
        return True

    def _ffuf_hash(self, pos: int) -> bytes:
        prefix = self.jobhash[:5] if len(self.jobhash) > 5 else ""
        return f"{prefix}{pos:x}".encode("utf-8")

    def _run_task(self, inputs: dict[str, bytes], position: int, retried: bool) -> None:
        with self._queue_lock:
            basereq = self._queuejobs[self._queuepos - 1].req
        try:
            req = self.runner.prepare(inputs, basereq)
        except Exception as err:
            self.output.error(f"Encountered an error while preparing request: {err}\n")
            self._inc_error()
            _log.info("%s", err)
            return
        req.position = position

        try:
            resp = self.runner.execute(req)
        except Exception as err:
            if retried:
                self._inc_error()
                _log.info("%s", err)
            else:
                self._run_task(inputs, position, True)
            return

        if self.spurious_error_counter > 0:
            self._reset_spurious_errors()
        if (self.config.stop_on_403 or self.config.stop_on_all) and resp.status_code == 403:
            self._inc_403()
        if self.config.stop_on_all and resp.status_code == 429:
            self._inc_429()
        self._resume.wait()

        with suppress(ValueError):
            self.calibrate_if_needed(host_url_from_request(req), inputs)

        if self.scraper is not None:
            for sres in self.scraper.execute(resp, self.is_match(resp)):
                resp.scraper_data[sres.name] = sres.results
                self._handle_scraper_result(resp, sres)

        if self.is_match(resp):
            if self.replay_runner is not None:
                self._replay(inputs, position, basereq)
            self.output.result(resp)
            self._update_progress()
            if self.config.recursion and self.config.recursion_strategy == "greedy":
                self._handle_greedy_recursion_job(resp)
        elif resp.scraper_data:
            self.output.result(resp)

        if (
            self.config.recursion
            and self.config.recursion_strategy == "default"
            and resp.get_redirect_location(False)
        ):
            self._handle_default_recursion_job(resp)

    def _replay(self, inputs: dict[str, bytes], position: int, basereq: Request) -> None:
        try:
            replayreq = self.replay_runner.prepare(inputs, basereq)
        except Exception as err:
            self.output.error(
                f"Encountered an error while preparing replayproxy request: {err}\n"
            )
            self._inc_error()
            _log.info("%s", err)
            return
        replayreq.position = position
        with suppress(Exception):
            self.replay_runner.execute(replayreq)

    @staticmethod
    def _handle_scraper_result(resp: Response, sres: Any) -> None:
        for action in sres.action:
            if action == "output":
                resp.scraper_data[sres.name] = sres.results

    def _depth_allows_recursion(self) -> bool:
        depth = self.config.recursion_depth
        return depth == 0 or self._current_depth < depth

    def _handle_greedy_recursion_job(self, resp: Response) -> None:
        if self._depth_allows_recursion():
            rec_url = resp.request.url + "/FUZZ"
            self._enqueue(
                QueueJob(
                    url=rec_url,
                    depth=self._current_depth + 1,
                    req=recursion_request(self.config, rec_url),
                )
            )
            self.output.info(f"Adding a new job to the queue: {rec_url}")
        else:
            self.output.warning(
                f"Maximum recursion depth reached. Ignoring: {resp.request.url}"
            )

    def _handle_default_recursion_job(self, resp: Response) -> None:
        rec_url = resp.request.url + "/FUZZ"
        location = resp.get_redirect_location(True)
        if resp.request.url + "/" != location:
            return
        if self._depth_allows_recursion():
            self._enqueue(
                QueueJob(
                    url=rec_url,
                    depth=self._current_depth + 1,
                    req=recursion_request(self.config, rec_url),
                )
            )
            self.output.info(f"Adding a new job to the queue: {rec_url}")
        else:
            self.output.warning(
                f"Directory found, but recursion depth exceeded. Ignoring: {location}"
            )

    def check_stop(self) -> None:
        """Stop the process, or the current job, when a stopping condition is met."""
        conf = self.config
        if self.counter > 50:
            if conf.stop_on_403 or conf.stop_on_all:
                if self.count_403 / self.counter > 0.95:
                    self.error = "Getting an unusual amount of 403 responses, exiting."
                    self.stop()
            if conf.stop_on_errors or conf.stop_on_all:
                if self.spurious_error_counter > conf.threads * 2:
                    self.error = "Receiving spurious errors, exiting."
                    self.stop()
            if conf.stop_on_all and self.count_429 / self.counter > 0.2:
                self.error = "Getting an unusual amount of 429 responses, exiting."
                self.stop()

        now = datetime.now()
        if conf.max_time > 0:
            started = self.start_time or datetime.min
            if int((now - started).total_seconds()) >= conf.max_time:
                self.error = "Maximum running time for entire process reached, exiting."
                self.stop()

        if conf.max_time_job > 0:
            if int((now - self.start_time_job).total_seconds()) >= conf.max_time_job:
                self.error = (
                    "Maximum running time for this job reached, "
                    "continuing with next job if one exists."
                )
                self.next()