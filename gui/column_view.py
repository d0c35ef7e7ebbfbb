"""
Column widget for the board window
----------------------------------
One ColumnView per board column: a header (title, add/rename/delete
buttons) above a scrollable stack of TaskCards.

The widgets hold no board data. They render what they are given and report
clicks through callbacks; drag targets are found by the window through the
`column_id` / `index` attributes set on each widget.
"""
from __future__ import annotations
from typing import Callable, Dict, Optional
import tkinter as tk
from tkinter import ttk
from core.models import Column, Member, Task

PRIORITY_COLORS = {"low": "#CBD5E1", "medium": "#F59E0B", "high": "#B00020"}


class TaskCard(ttk.Frame):
    """Title, assignee and priority tags, effort and the latest comment."""
    def __init__(
        self,
        master,
        task: Task,
        index: int,
        members: Dict[str, Member],
        selected: bool = False,
        on_press: Optional[Callable[[str, str, int], None]] = None,
        on_select: Optional[Callable[[str], None]] = None,
        on_menu: Optional[Callable[[str], None]] = None,
        wrap: int = 220,
    ):
        super().__init__(master, style="Card.Selected.TFrame" if selected else "Card.TFrame", padding=6)
        self.task_id = task.id
        self.column_id = task.column_id
        self.index = index
        self._on_press = on_press
        self._on_select = on_select
        self._on_menu = on_menu

        self.columnconfigure(0, weight=1)
        self.lbl = ttk.Label(self, text=task.title, wraplength=wrap, anchor="w", justify="left",
                             font=("TkDefaultFont", 10, "bold"))
        self.lbl.grid(row=0, column=0, sticky="we")
        self.menu_btn = ttk.Button(self, text="⋮", width=2, command=self._menu)
        self.menu_btn.grid(row=0, column=1, padx=(4, 0))

        tags = ttk.Frame(self)
        tags.grid(row=1, column=0, columnspan=2, sticky="w", pady=(4, 0))
        assignee = members.get(task.member_id)
        if assignee:
            _tag(tags, assignee.name, assignee.color)
        _tag(tags, task.priority, PRIORITY_COLORS.get(task.priority, "#CBD5E1"))
        _tag(tags, f"{task.effort}h", "#E2E8F0")

        latest = task.latest_comment
        if latest:
            author = members.get(latest.author_id)
            who = author.name if author else "?"
            ttk.Label(self, text=f"💬 {len(task.comments)} · {who}: {latest.text[:40]}",
                      foreground="#64748B").grid(row=2, column=0, columnspan=2, sticky="w")

        for widget in (self, self.lbl):
            widget.bind("<ButtonPress-1>", self._press)
            widget.bind("<Double-Button-1>", self._select)

    def _press(self, _event=None):
        if self._on_press:
            self._on_press(self.task_id, self.column_id, self.index)

    def _select(self, _event=None):
        if self._on_select:
            self._on_select(self.task_id)

    def _menu(self):
        if self._on_menu:
            self._on_menu(self.task_id)


class ColumnView(ttk.Frame):
    """Header plus a Canvas + interior Frame holding the column's task cards."""
    def __init__(
        self,
        master,
        column: Column,
        members: Dict[str, Member],
        selected_task_id: Optional[str] = None,
        on_add_task: Optional[Callable[[str], None]] = None,
        on_rename: Optional[Callable[[str], None]] = None,
        on_remove: Optional[Callable[[str], None]] = None,
        on_column_press: Optional[Callable[[str], None]] = None,
        on_task_press: Optional[Callable[[str, str, int], None]] = None,
        on_task_select: Optional[Callable[[str], None]] = None,
        on_task_menu: Optional[Callable[[str], None]] = None,
        width: int = 260,
        **kwargs,
    ):
        super().__init__(master, padding=4, **kwargs)
        self.column_id = column.id
        self.index = len(column.tasks)  # dropping on empty space appends
        self._on_column_press = on_column_press

        # --- header ---
        header = ttk.Frame(self)
        header.pack(fill="x")
        self.title_lbl = ttk.Label(header, text=f"{column.title} ({len(column.tasks)})",
                                   font=("TkDefaultFont", 11, "bold"), cursor="fleur")
        self.title_lbl.pack(side="left")
        self.title_lbl.column_id = column.id
        self.title_lbl.bind("<ButtonPress-1>", self._press_header)
        ttk.Button(header, text="✕", width=2, command=lambda: on_remove and on_remove(column.id)).pack(side="right")
        ttk.Button(header, text="✎", width=2, command=lambda: on_rename and on_rename(column.id)).pack(side="right")
        ttk.Button(header, text="+", width=2, command=lambda: on_add_task and on_add_task(column.id)).pack(side="right")

        # --- body ---
        self.canvas = tk.Canvas(self, highlightthickness=0, width=width)
        self.vbar = ttk.Scrollbar(self, orient="vertical", command=self.canvas.yview)
        self.canvas.configure(yscrollcommand=self.vbar.set)
        self.vbar.pack(side="right", fill="y")
        self.canvas.pack(side="left", fill="both", expand=True)
        self.canvas.column_id = column.id
        self.canvas.index = len(column.tasks)

        self.interior = ttk.Frame(self.canvas)
        self.interior.column_id = column.id
        self.interior.index = len(column.tasks)
        self._win_id = self.canvas.create_window(0, 0, window=self.interior, anchor="nw")
        self.interior.bind("<Configure>", self._on_interior_configure)
        self.canvas.bind("<Configure>", self._on_canvas_configure)

        self._cards: Dict[str, TaskCard] = {}
        for i, task in enumerate(column.tasks):
            card = TaskCard(
                self.interior, task, i, members,
                selected=task.id == selected_task_id,
                on_press=on_task_press,
                on_select=on_task_select,
                on_menu=on_task_menu,
                wrap=width - 60,
            )
            card.grid(row=i, column=0, sticky="we", padx=2, pady=3)
            self._cards[task.id] = card
        self.interior.columnconfigure(0, weight=1)

    def _press_header(self, _event=None):
        if self._on_column_press:
            self._on_column_press(self.column_id)

    def _on_interior_configure(self, _):
        self.canvas.configure(scrollregion=self.canvas.bbox("all"))

    def _on_canvas_configure(self, event):
        self.canvas.itemconfigure(self._win_id, width=event.width)


def drop_target(widget) -> Optional[tuple]:
    """Walk up from the widget under the pointer to the nearest (column_id, index)."""
    while widget is not None:
        column_id = getattr(widget, "column_id", None)
        if column_id is not None:
            return column_id, getattr(widget, "index", 0)
        widget = getattr(widget, "master", None)
    return None


def _tag(master, label: str, bg: str):
    tk.Label(master, text=label, bg=bg, fg=ideal_text_color(bg), padx=4, pady=1).pack(side="left", padx=(0, 4))


# --- Utility: pick readable text color for a given bg ---
def ideal_text_color(bg_hex: str) -> str:
    """Return black or white depending on background brightness."""
    bg_hex = bg_hex.strip().lstrip('#')
    if len(bg_hex) == 3:
        bg_hex = ''.join(c*2 for c in bg_hex)
    try:
        r = int(bg_hex[0:2], 16)
        g = int(bg_hex[2:4], 16)
        b = int(bg_hex[4:6], 16)
    except ValueError:
        return "black"
    # Perceived luminance
    luminance = 0.299*r + 0.587*g + 0.114*b
    return "black" if luminance > 186 else "white"
