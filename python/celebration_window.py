#!/usr/bin/env python3
"""Winner reveal overlay with fireworks and an optional win sound."""

from __future__ import annotations

import logging
import math
import random
import tkinter as tk
from pathlib import Path
from typing import Any

import pygame
from PIL import Image, ImageTk, UnidentifiedImageError

from raffle_data import display_name

logger = logging.getLogger(__name__)


class CelebrationOverlay:
    """Celebration collaborator: ``start`` shows the reveal, ``stop`` hides it."""

    FRAME_MS = 30

    def __init__(
        self,
        root: tk.Tk,
        colors: dict[str, str],
        win_sound_path: Path | None = None,
        background_path: Path | None = None,
        display_column: int | None = None,
    ) -> None:
        self.root = root
        self.colors = colors
        self.win_sound_path = win_sound_path
        self.background_path = background_path
        self.display_column = display_column
        self.window: tk.Toplevel | None = None
        self.canvas: tk.Canvas | None = None
        self.particles: list[dict[str, Any]] = []
        self.stop_after_id: str | None = None
        self.frame_after_id: str | None = None
        self.burst_count = 0
        self.background_original = None
        self.background_image = None
        self.audio_ready = False
        self.win_sound = None
        self._init_audio()

    @property
    def is_running(self) -> bool:
        return self.window is not None

    def _init_audio(self) -> None:
        if not self.win_sound_path or not Path(self.win_sound_path).exists():
            return
        try:
            if not pygame.mixer.get_init():
                pygame.mixer.init()
            self.win_sound = pygame.mixer.Sound(str(self.win_sound_path))
            self.audio_ready = True
        except pygame.error as exc:
            logger.warning("Win sound disabled: %s", exc)
            self.audio_ready = False

    def start(self, winner_row: dict[str, Any], display_number: int, duration_seconds: float) -> None:
        self.stop()
        self.window = tk.Toplevel(self.root)
        self.window.title("Winner")
        self.window.attributes("-topmost", True)
        width = int(self.root.winfo_width() * 0.8) or 900
        height = int(self.root.winfo_height() * 0.8) or 600
        x = self.root.winfo_rootx() + (self.root.winfo_width() - width) // 2
        y = self.root.winfo_rooty() + (self.root.winfo_height() - height) // 2
        self.window.geometry(f"{width}x{height}+{max(0, x)}+{max(0, y)}")
        self.window.protocol("WM_DELETE_WINDOW", self.stop)
        self.window.bind("<Escape>", lambda event: self.stop())

        self.canvas = tk.Canvas(self.window, bg=self.colors["bg"], highlightthickness=0)
        self.canvas.pack(fill=tk.BOTH, expand=True)
        tk.Button(
            self.window,
            text="Skip",
            command=self.stop,
            bg=self.colors["panel"],
            fg=self.colors["text"],
            relief=tk.FLAT,
        ).place(relx=0.98, rely=0.02, anchor=tk.NE)
        self.window.update_idletasks()

        self._draw_background(width, height)
        self.canvas.create_text(
            width / 2,
            height * 0.38,
            text=f"#{display_number}",
            fill=self.colors["accent"],
            font=("Helvetica", 72, "bold"),
            tags="reveal",
        )
        self.canvas.create_text(
            width / 2,
            height * 0.58,
            text=display_name(winner_row, self.display_column),
            fill=self.colors["text"],
            font=("Helvetica", 32, "bold"),
            width=width * 0.85,
            justify=tk.CENTER,
            tags="reveal",
        )

        self.particles = []
        self.burst_count = 0
        self._spawn_burst(width / 2, height / 2)
        if self.audio_ready and self.win_sound:
            try:
                self.win_sound.play()
            except pygame.error as exc:
                logger.warning("Could not play win sound: %s", exc)

        self.frame_after_id = self.root.after(self.FRAME_MS, self._animate)
        self.stop_after_id = self.root.after(int(max(0.0, duration_seconds) * 1000), self.stop)

    def stop(self) -> None:
        for after_id in (self.stop_after_id, self.frame_after_id):
            if after_id:
                self.root.after_cancel(after_id)
        self.stop_after_id = None
        self.frame_after_id = None
        self.particles = []
        if self.audio_ready and self.win_sound:
            try:
                self.win_sound.stop()
            except pygame.error as exc:
                logger.debug("Win sound stop failed: %s", exc)
        if self.window is not None:
            self.window.destroy()
        self.window = None
        self.canvas = None

    def _draw_background(self, width: int, height: int) -> None:
        if not self.background_path or not Path(self.background_path).exists():
            return
        if self.background_original is None:
            try:
                self.background_original = Image.open(self.background_path)
            except (OSError, UnidentifiedImageError) as exc:
                logger.warning("Background image disabled: %s", exc)
                self.background_path = None
                return
        resized = self.background_original.resize((width, height), Image.Resampling.LANCZOS)
        self.background_image = ImageTk.PhotoImage(resized)
        background_id = self.canvas.create_image(0, 0, image=self.background_image, anchor=tk.NW)
        self.canvas.tag_lower(background_id)

    def _spawn_burst(self, center_x: float, center_y: float) -> None:
        palette = [self.colors["accent"], self.colors["accent_2"], self.colors["success"], "#ffe66d", "#f15bb5"]
        for _ in range(60):
            angle = random.uniform(0, 2 * math.pi)
            speed = random.uniform(2.5, 7.5)
            size = random.randint(3, 7)
            color = random.choice(palette)
            particle_id = self.canvas.create_oval(
                center_x - size,
                center_y - size,
                center_x + size,
                center_y + size,
                fill=color,
                outline="",
                tags="particle",
            )
            self.particles.append(
                {
                    "id": particle_id,
                    "vx": math.cos(angle) * speed,
                    "vy": math.sin(angle) * speed,
                    "life": random.randint(40, 70),
                }
            )
        self.burst_count += 1

    def _animate(self) -> None:
        if self.canvas is None:
            return
        for particle in list(self.particles):
            self.canvas.move(particle["id"], particle["vx"], particle["vy"])
            particle["vy"] += 0.15
            particle["life"] -= 1
            if particle["life"] <= 0:
                self.canvas.delete(particle["id"])
                self.particles.remove(particle)
        # A fresh rocket roughly every second keeps the sky busy.
        if len(self.particles) < 20 or random.random() < 0.03:
            width = self.canvas.winfo_width() or 900
            height = self.canvas.winfo_height() or 600
            self._spawn_burst(random.uniform(width * 0.15, width * 0.85), random.uniform(height * 0.15, height * 0.5))
        self.frame_after_id = self.root.after(self.FRAME_MS, self._animate)
