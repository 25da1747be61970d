"""Automatic calibration of filters from responses to random inputs."""

from __future__ import annotations

import logging
import threading
from contextlib import suppress
from typing import Any

from webfuzz.request import base_request
from webfuzz.response import Response
from webfuzz.util import host_url_from_request, random_string

_log = logging.getLogger(__name__)

_BASELINES = (
    ("content_length", "size"),
    ("content_words", "word"),
    ("content_lines", "line"),
)


class CalibrationMixin:
    """Calibration for a job.

    The class using it provides ``config``, ``runner``, ``output``, an
    ``is_match(resp)`` method and an ``_inc_error()`` method.
    """

    config: Any
    runner: Any
    output: Any

    @property
    def _calibration_lock(self) -> threading.Lock:
        return self.__dict__.setdefault("_calib_lock", threading.Lock())

    def _auto_calibration_strings(self) -> dict[str, list[str]]:
        custom = self.config.auto_calibration_strings
        if custom:
            return {"custom": list(custom)}
        groups = {
            "basic_admin": ["admin" + random_string(16), "admin" + random_string(8)],
            "htaccess": [".htaccess" + random_string(16), ".htaccess" + random_string(8)],
            "basic_random": [random_string(16), random_string(8)],
        }
        if self.config.auto_calibration_strategy == "advanced":
            groups["admin_dir"] = [
                "admin" + random_string(16) + "/",
                "admin" + random_string(8) + "/",
            ]
            groups["random_dir"] = [random_string(16) + "/", random_string(8) + "/"]
        return groups

    def _calibration_request(self, inputs: dict[str, bytes]) -> Response | None:
        """Send one calibration request; return its response only if it would be matched."""
        basereq = base_request(self.config)
        try:
            req = self.runner.prepare(inputs, basereq)
        except Exception as err:
            self.output.error(
                f"Encountered an error while preparing autocalibration request: {err}\n"
            )
            self._inc_error()
            _log.info("%s", err)
            return None
        try:
            resp = self.runner.execute(req)
        except Exception as err:
            self.output.error(
                f"Encountered an error while executing autocalibration request: {err}\n"
            )
            self._inc_error()
            _log.info("%s", err)
            return None
        return resp if self.is_match(resp) else None

    def calibrate_for_host(self, host: str, baseinput: dict[str, bytes]) -> None:
        """Calibrate the filters of one host; raise ValueError if the keyword is missing."""
        manager = self.config.matcher_manager
        if manager.calibrated_for_domain(host):
            return
        keyword = self.config.auto_calibration_keyword
        if baseinput.get(keyword) is None:
            raise ValueError(f'Autocalibration keyword "{keyword}" not found in the request.')
        inputs = dict(baseinput)
        for strings in self._auto_calibration_strings().values():
            responses: list[Response] = []
            for text in strings:
                inputs[keyword] = text.encode("utf-8")
                resp = self._calibration_request(inputs)
                if resp is None:
                    continue
                responses.append(resp)
                try:
                    self._calibrate_filters(responses, True)
                except LookupError as err:
                    self.output.error(str(err))
        manager.set_calibrated_for_host(host, True)

    def calibrate(self, inputs: dict[str, bytes]) -> None:
        """Calibrate the global filters from responses to random inputs."""
        manager = self.config.matcher_manager
        if manager.is_calibrated():
            return
        keyword = self.config.auto_calibration_keyword
        request_inputs = dict(inputs)
        for strings in self._auto_calibration_strings().values():
            responses: list[Response] = []
            for text in strings:
                request_inputs[keyword] = text.encode("utf-8")
                resp = self._calibration_request(request_inputs)
                if resp is not None:
                    responses.append(resp)
            with suppress(LookupError):
                self._calibrate_filters(responses, False)
        manager.set_calibrated(True)

    def calibrate_if_needed(self, host: str, inputs: dict[str, bytes]) -> None:
        """Run calibration once, globally or for the host, when it is switched on."""
        with self._calibration_lock:
            if not self.config.auto_calibration:
                return
            if self.config.auto_calibration_per_host:
                self.calibrate_for_host(host, inputs)
            else:
                self.calibrate(inputs)

    def _calibrate_filters(self, responses: list[Response], per_host: bool) -> None:
        """Add a filter for the most specific value all responses share; raise LookupError."""
        if responses:
            first = responses[0]
            manager = self.config.matcher_manager
            for attr, name in _BASELINES:
                baseline = getattr(first, attr)
                if any(getattr(resp, attr) != baseline for resp in responses):
                    continue
                if per_host:
                    domain = host_url_from_request(first.request)
                    existing = manager.filters_for_domain(domain)
                else:
                    existing = manager.get_filters()
                if _already_filtered(existing.values(), first):
                    return
                with suppress(ValueError):
                    if per_host:
                        manager.add_per_domain_filter(domain, name, str(baseline))
                    else:
                        manager.add_filter(name, str(baseline), False)
                return
        raise LookupError("No common filtering values found")


def _already_filtered(filters: Any, resp: Response) -> bool:
    for provider in filters:
        try:
            if provider.filter(resp):
                return True
        except Exception:
            continue
    return False