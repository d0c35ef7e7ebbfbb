import tkinter as tk
from tkinter import ttk, messagebox as mb
from dataclasses import replace
from typing import Callable, Dict, List, Optional
from controller.app_controller import AppController
from core.exceptions import KanbanError
from core.models import PRIORITIES, Member, Task


class TaskDetails(ttk.Frame):
    """Side panel editing the selected task and listing its comments, newest first."""
    def __init__(self, master, controller: AppController, on_close: Optional[Callable[[], None]] = None,
                 on_change: Optional[Callable[[], None]] = None):
        super().__init__(master, padding=8)
        self.controller = controller
        self._on_close = on_close
        self._on_change = on_change
        self._task: Optional[Task] = None
        self._members: List[Member] = []

        top = ttk.Frame(self)
        top.pack(fill="x")
        ttk.Label(top, text="Task", font=("TkDefaultFont", 12, "bold")).pack(side="left")
        ttk.Button(top, text="✕", width=2, command=self._close).pack(side="right")
        ttk.Button(top, text="⟳", width=2, command=self._refresh_comments).pack(side="right")

        form = ttk.Frame(self)
        form.pack(fill="x", pady=6)
        form.columnconfigure(1, weight=1)
        self.title_var = tk.StringVar()
        self.member_var = tk.StringVar()
        self.requester_var = tk.StringVar()
        self.start_var = tk.StringVar()
        self.effort_var = tk.StringVar()
        self.priority_var = tk.StringVar()
        self.column_var = tk.StringVar()

        self.member_cb = ttk.Combobox(form, textvariable=self.member_var, state="readonly")
        self.requester_cb = ttk.Combobox(form, textvariable=self.requester_var, state="readonly")
        self.column_cb = ttk.Combobox(form, textvariable=self.column_var, state="readonly")
        rows = [
            ("Title", ttk.Entry(form, textvariable=self.title_var)),
            ("Assignee", self.member_cb),
            ("Requester", self.requester_cb),
            ("Start", ttk.Entry(form, textvariable=self.start_var)),
            ("Effort (h)", ttk.Spinbox(form, from_=1, to=999, textvariable=self.effort_var)),
            ("Priority", ttk.Combobox(form, textvariable=self.priority_var, values=PRIORITIES, state="readonly")),
            ("Column", self.column_cb),
        ]
        for i, (label, widget) in enumerate(rows):
            ttk.Label(form, text=label).grid(row=i, column=0, sticky="w", pady=2)
            widget.grid(row=i, column=1, sticky="we", pady=2)

        ttk.Label(self, text="Description").pack(anchor="w")
        self.description = tk.Text(self, height=5, wrap="word")
        self.description.pack(fill="x")
        ttk.Button(self, text="Save", command=self._save).pack(anchor="e", pady=(4, 8))

        ttk.Label(self, text="Comments").pack(anchor="w")
        self.comments = tk.Listbox(self, height=8)
        self.comments.pack(fill="both", expand=True)
        add = ttk.Frame(self)
        add.pack(fill="x", pady=(4, 0))
        self.comment_entry = ttk.Entry(add)
        self.comment_entry.pack(side="left", fill="x", expand=True)
        self.comment_entry.bind("<Return>", self._add_comment)
        self.url_entry = ttk.Entry(add, width=18)
        self.url_entry.pack(side="left", padx=4)
        ttk.Button(add, text="Comment", command=self._add_comment).pack(side="left")

    # ---------- data ----------
    def show(self, task: Task, members: List[Member], columns: Dict[str, str]) -> None:
        """`columns` maps column id -> title for the task's board."""
        self._task = task
        self._members = members
        self._columns = columns
        names = [m.name for m in members]
        self.member_cb.configure(values=names)
        self.requester_cb.configure(values=names)
        self.column_cb.configure(values=list(columns.values()))

        self.title_var.set(task.title)
        self.member_var.set(self._name(task.member_id))
        self.requester_var.set(self._name(task.requester_id))
        self.start_var.set(task.start_date)
        self.effort_var.set(str(task.effort))
        self.priority_var.set(task.priority)
        self.column_var.set(columns.get(task.column_id, ""))
        self.description.delete("1.0", "end")
        self.description.insert("1.0", task.description)

        by_id = {m.id: m.name for m in members}
        self.comments.delete(0, "end")
        for c in task.sorted_comments():
            files = f" [{len(c.attachments)} file(s)]" if c.attachments else ""
            self.comments.insert("end", f"{by_id.get(c.author_id, '?')} · {c.created_at[:16]}: {c.text}{files}")

    def _name(self, member_id: str) -> str:
        for m in self._members:
            if m.id == member_id:
                return m.name
        return ""

    def _member_id(self, name: str, fallback: str) -> str:
        for m in self._members:
            if m.name == name:
                return m.id
        return fallback

    # ---------- actions ----------
    def _save(self):
        if not self._task:
            return
        column_id = next((cid for cid, title in self._columns.items() if title == self.column_var.get()),
                         self._task.column_id)
        try:
            effort = int(self.effort_var.get())
        except ValueError:
            mb.showerror("Task", "Effort must be a whole number of hours")
            return
        edited = replace(
            self._task,
            title=self.title_var.get(),
            member_id=self._member_id(self.member_var.get(), self._task.member_id),
            requester_id=self._member_id(self.requester_var.get(), self._task.requester_id),
            start_date=self.start_var.get().strip(),
            effort=effort,
            priority=self.priority_var.get(),
            column_id=column_id,
            description=self.description.get("1.0", "end").rstrip("\n"),
        )
        try:
            self.controller.update_task(edited)
        except KanbanError as e:
            mb.showerror("Task", str(e))
            return
        self._changed()

    def _add_comment(self, event=None):
        if not self._task:
            return
        url = self.url_entry.get().strip()
        attachments = [{"name": url.rsplit("/", 1)[-1] or url, "url": url}] if url else []
        try:
            self.controller.add_comment(self._task.id, self.comment_entry.get(), attachments)
        except KanbanError as e:
            mb.showerror("Comment", str(e))
            return
        self.comment_entry.delete(0, "end")
        self.url_entry.delete(0, "end")
        self._changed()

    def _refresh_comments(self):
        if self._task and self.controller.refresh_task(self._task.id):
            self._changed()

    def _changed(self):
        if self._on_change:
            self._on_change()

    def _close(self):
        if self._on_close:
            self._on_close()
