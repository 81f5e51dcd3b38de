#!/usr/bin/env python3
"""Rendering helpers for the wheel pane."""

from __future__ import annotations

import time

from wheel_spin import SpinFrame, center_offset, visible_slots


class WheelWindowRender:
    def _request_render(self, force: bool = False) -> None:
        """Merge render requests into a fixed frame rate."""
        if force:
            self.force_full_render = True
        if self.render_after_id:
            return
        self.render_after_id = self.after(self.render_interval_ms, self._render_wheel_throttled)

    def _render_wheel_throttled(self) -> None:
        now = time.monotonic()
        min_interval = 0.016
        elapsed = now - self.last_render_time
        if elapsed < min_interval:
            remaining = int((min_interval - elapsed) * 1000)
            self.render_after_id = self.after(max(1, remaining), self._render_wheel_throttled)
            return
        self.render_after_id = None
        self._render_wheel(force_full=self.force_full_render)
        self.force_full_render = False

    def _render_wheel(self, force_full: bool = False) -> None:
        width = self.canvas.winfo_width()
        height = self.canvas.winfo_height()
        if width <= 1 or height <= 1:
            return
        self.last_render_time = time.monotonic()
        item_size = self.controller.animator.item_size

        size_changed = (width, height) != self.last_canvas_size
        if size_changed or force_full:
            self.last_canvas_size = (width, height)
            self._render_static_layers(width, height, item_size)

        self.canvas.delete("wheel")
        slot_count = self.controller.slot_count
        if slot_count < 1:
            self.canvas.create_text(
                width / 2,
                height / 2,
                text="Load a file to start",
                fill=self.colors["muted"],
                font=("Helvetica", 20),
                tags="wheel",
            )
            self.canvas.tag_raise("overlay")
            return

        frame: SpinFrame = self.current_frame or self.controller.animator.current_frame()
        for slot_index, top in visible_slots(frame.wrapped_offset, slot_count, item_size, height):
            is_center = slot_index == frame.center_index
            if is_center and frame.settled:
                color = self.colors["accent"]
            elif is_center:
                color = self.colors["text"]
            else:
                color = self.colors["muted"]
            font_size = 56 if is_center else 40
            self.canvas.create_text(
                width / 2,
                top + item_size / 2,
                text=str(slot_index + 1),
                fill=color,
                font=("Helvetica", font_size, "bold"),
                tags="wheel",
            )
        self.canvas.tag_raise("overlay")

    def _render_static_layers(self, width: int, height: int, item_size: float) -> None:
        self.canvas.delete("overlay")
        self.canvas.configure(bg=self.colors["panel"])
        window_top = center_offset(height, item_size)
        # Selection window
        self.canvas.create_rectangle(
            24,
            window_top,
            width - 24,
            window_top + item_size,
            outline=self.colors["accent"],
            width=3,
            tags="overlay",
        )
        # Fade the edges of the strip.
        fade = max(0.0, window_top - item_size / 2)
        for top, bottom in ((0, fade), (height - fade, height)):
            if bottom - top <= 0:
                continue
            self.canvas.create_rectangle(
                0,
                top,
                width,
                bottom,
                fill=self.colors["panel"],
                outline="",
                stipple="gray50",
                tags="overlay",
            )
