from functools import cached_property
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, model_validator

from pagerunner.models.actions import (
    Action,
    FullBodyLoad,
    PixelClick,
    SelectorClick,
    SelectorLoad,
)

Mode = Literal["pixel-click", "selector-click", "selector-load", "full-body-load"]
OutputMode = Literal["html", "markdown"]

_SELECTOR_MODES = {"selector-click", "selector-load"}


class Coordinates(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    x: float = Field(ge=0, description="Horizontal offset in CSS pixels.")
    y: float = Field(ge=0, description="Vertical offset in CSS pixels.")


class ForceWait(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    enabled: bool = False
    interval_ms: int | None = Field(
        default=None,
        ge=0,
        description="Settle window in milliseconds (defaults to the server setting).",
    )


class NavigateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    url: HttpUrl
    mode: Mode
    """Interaction protocol to run once the page has loaded.

    ``"pixel-click"``
        Click at ``coordinates`` and wait for the resulting navigation.

    ``"selector-click"``
        Click the element matching ``selector`` and wait for the resulting
        navigation.

    ``"selector-load"``
        Return only the inner HTML of the element matching ``selector``.

    ``"full-body-load"``
        Return the whole document.
    """
    coordinates: Coordinates | None = None
    selector: str | None = Field(default=None, min_length=1, examples=["#content", "a.next"])
    session_state_folder: str | None = Field(
        default=None,
        description="Folder holding cookies.json and localStorage.json to replay before navigation.",
    )
    navigation_timeout_ms: int | None = Field(
        default=None,
        gt=0,
        description="Timeout for each navigation wait (defaults to the server setting).",
    )
    force_wait: ForceWait = ForceWait()
    screenshot: bool = False
    html: bool = False
    output_mode: OutputMode = "html"
    structured_output: bool = False

    @model_validator(mode="before")
    @classmethod
    def _map_legacy_fields(cls, data: Any) -> Any:
        """Accept the flat field names used by older clients.

        ``h``/``w`` become ``coordinates``, ``sessionState_enable`` plus
        ``sessionStateFolder`` become ``session_state_folder`` and
        ``forceWaitEnabled``/``forceWaitInterval`` become ``force_wait``.
        """
        if not isinstance(data, dict):
            return data
        data = dict(data)

        if "h" in data or "w" in data:
            h, w = data.pop("h", None), data.pop("w", None)
            if h is not None and w is not None:
                data.setdefault("coordinates", {"x": h, "y": w})

        if "sessionState_enable" in data or "sessionStateFolder" in data:
            enabled = data.pop("sessionState_enable", False)
            folder = data.pop("sessionStateFolder", None)
            if enabled:
                if not folder:
                    raise ValueError(
                        "sessionStateFolder is required when sessionState_enable is true"
                    )
                data.setdefault("session_state_folder", folder)

        if "forceWaitEnabled" in data or "forceWaitInterval" in data:
            force_wait = {"enabled": bool(data.pop("forceWaitEnabled", False))}
            interval = data.pop("forceWaitInterval", None)
            if interval is not None:
                force_wait["interval_ms"] = interval
            data.setdefault("force_wait", force_wait)

        return data

    @model_validator(mode="after")
    def _check_mode_fields(self) -> "NavigateRequest":
        if self.mode == "pixel-click" and self.coordinates is None:
            raise ValueError("coordinates are required for pixel-click mode")
        if self.mode in _SELECTOR_MODES and not self.selector:
            raise ValueError(f"selector is required for {self.mode} mode")
        return self

    @cached_property
    def action(self) -> Action:
        """The interaction this request asks for, as a closed variant."""
        if self.mode == "pixel-click":
            return PixelClick(x=self.coordinates.x, y=self.coordinates.y)
        if self.mode == "selector-click":
            return SelectorClick(selector=self.selector)
        if self.mode == "selector-load":
            return SelectorLoad(selector=self.selector)
        return FullBodyLoad()
