import tkinter as tk
from tkinter import ttk, messagebox as mb, simpledialog
import datetime as dt
from core.config import POLL_INTERVAL_MS, TOPMOST, WINDOW_GEOMETRY
from core.exceptions import KanbanError, LoadError, PersistenceError
from controller.app_controller import AppController
from controller.drag import DragSession
from gui.column_view import ColumnView, drop_target, ideal_text_color
from gui.debug_panel import DebugPanel
from gui.task_details import TaskDetails
from services.query_log import QueryLog

MEMBER_COLORS = ("#2E86DE", "#27AE60", "#F59E0B", "#A78BFA", "#F472B6", "#38BDF8", "#EF4444")


class MainWindow(tk.Tk):
    def __init__(self, controller: AppController, query_log: QueryLog):
        super().__init__()
        self.controller = controller
        self.query_log = query_log
        self.drag = DragSession(controller)
        controller.on_error = self._on_error
        self.title("Kanban")
        self.geometry(WINDOW_GEOMETRY)
        self.configure(padx=8, pady=8)
        if TOPMOST:
            self.attributes("-topmost", True)

        style = ttk.Style(self)
        style.configure("Card.TFrame", relief="raised", borderwidth=1)
        style.configure("Card.Selected.TFrame", relief="solid", borderwidth=2)

        # Top bar
        top = ttk.Frame(self)
        top.pack(fill="x", pady=(0, 6))
        self.board_var = tk.StringVar()
        self.board_cb = ttk.Combobox(top, textvariable=self.board_var, state="readonly", width=28)
        self.board_cb.pack(side="left")
        self.board_cb.bind("<<ComboboxSelected>>", self._on_board_selected)
        ttk.Button(top, text="New board", command=self._add_board).pack(side="left", padx=(6, 0))
        ttk.Button(top, text="Rename", command=self._rename_board).pack(side="left", padx=(6, 0))
        ttk.Button(top, text="Delete", command=self._remove_board).pack(side="left", padx=(6, 0))
        ttk.Button(top, text="New column", command=self._add_column).pack(side="left", padx=(18, 0))
        ttk.Button(top, text="Debug", command=self._open_debug).pack(side="right")
        ttk.Button(top, text="Reload", command=self._reload).pack(side="right", padx=(0, 6))
        self.status_var = tk.StringVar(value="Ready")
        ttk.Label(top, textvariable=self.status_var).pack(side="right", padx=12)

        # Members
        self.members_bar = ttk.Frame(self)
        self.members_bar.pack(fill="x", pady=(0, 6))

        # Columns + details
        body = ttk.Frame(self)
        body.pack(fill="both", expand=True)
        self.columns_frame = ttk.Frame(body)
        self.columns_frame.pack(side="left", fill="both", expand=True)
        self.details = TaskDetails(body, controller, on_close=self._close_details, on_change=self.render)

        # timers / binds
        self.bind("<F5>", lambda e: self._reload())
        self.bind_all("<ButtonRelease-1>", self._on_release, add="+")
        self.protocol("WM_DELETE_WINDOW", self._on_close)
        self.after(POLL_INTERVAL_MS, self._poll)
        self._reload()

    # ---------- rendering ----------
    def render(self):
        sel = self.controller.selection
        boards = self.controller.store.boards
        self._board_ids = [b.id for b in boards]
        self.board_cb.configure(values=[b.title for b in boards])
        board = sel.selected_board
        self.board_var.set(board.title if board else "")
        self._render_members()
        self._render_columns()
        task = sel.selected_task
        if task:
            columns = {c.id: c.title for c in self.controller.store.board(task.board_id).columns}
            self.details.show(task, self.controller.store.members, columns)
            self.details.pack(side="right", fill="y")
        else:
            self.details.pack_forget()
        pending = self.controller.outstanding
        if pending:
            self.status_var.set(f"Saving… {pending}")

    def _render_members(self):
        for child in self.members_bar.winfo_children():
            child.destroy()
        ttk.Label(self.members_bar, text="Team:").pack(side="left")
        selected = self.controller.selection.selected_member_id
        for m in self.controller.store.members:
            lbl = tk.Label(self.members_bar, text=m.name, bg=m.color, fg=ideal_text_color(m.color), padx=6, pady=2,
                           relief="solid" if m.id == selected else "flat", borderwidth=2)
            lbl.pack(side="left", padx=(4, 0))
            lbl.bind("<Button-1>", lambda e, mid=m.id: self._select_member(mid))
        self.member_entry = ttk.Entry(self.members_bar, width=16)
        self.member_entry.pack(side="left", padx=(12, 4))
        self.member_entry.bind("<Return>", self._add_member)
        ttk.Button(self.members_bar, text="Add", command=self._add_member).pack(side="left")
        ttk.Button(self.members_bar, text="Remove", command=self._remove_member).pack(side="left", padx=(4, 0))

    def _render_columns(self):
        for child in self.columns_frame.winfo_children():
            child.destroy()
        members = {m.id: m for m in self.controller.store.members}
        selected_task = self.controller.selection.selected_task_id
        for column in self.controller.selection.rendered_columns():
            view = ColumnView(
                self.columns_frame,
                column,
                members,
                selected_task_id=selected_task,
                on_add_task=self._add_task,
                on_rename=self._rename_column,
                on_remove=self._remove_column,
                on_column_press=self.drag.start_column_drag,
                on_task_press=self.drag.start_task_drag,
                on_task_select=self._select_task,
                on_task_menu=self._task_menu,
            )
            view.pack(side="left", fill="both", expand=True, padx=4)

    # ---------- sync ----------
    def _reload(self):
        if self.controller.load():
            self.status_var.set(f"Loaded {dt.datetime.now().strftime('%H:%M:%S')}")
        self.render()

    def _poll(self):
        try:
            if self.controller.pump():
                self.status_var.set(f"Saved {dt.datetime.now().strftime('%H:%M:%S')}")
                self.render()
        finally:
            self.after(POLL_INTERVAL_MS, self._poll)

    def _on_error(self, error: KanbanError):
        if isinstance(error, PersistenceError):
            self.status_var.set(f"Not saved: {error.action}")
            mb.showerror("Save failed", str(error))
        elif isinstance(error, LoadError):
            self.status_var.set("Load failed")
            mb.showerror("Load failed", str(error))

    def _run(self, title: str, action, *args) -> bool:
        """Run a controller action, showing rejected ones to the user."""
        try:
            action(*args)
        except KanbanError as e:
            mb.showerror(title, str(e))
            return False
        self.render()
        return True

    # ---------- drag ----------
    def _on_release(self, event):
        if not self.drag.active:
            return
        target = drop_target(self.winfo_containing(event.x_root, event.y_root))
        if target is None:
            self.drag.end_drag()
            return
        column_id, index = target
        if self.drag.column_id is not None:
            self.drag.drag_over_column(column_id)
        else:
            self.drag.drag_over_task(column_id, index)
        try:
            changed = self.drag.drop()
        except KanbanError as e:
            mb.showerror("Move", str(e))
            changed = True
        if changed:
            # rebuild after the release handler returns, the pressed widget is still alive here
            self.after_idle(self.render)

    # ---------- boards ----------
    def _on_board_selected(self, _event=None):
        i = self.board_cb.current()
        if 0 <= i < len(self._board_ids):
            self._run("Board", self.controller.selection.select_board, self._board_ids[i])

    def _add_board(self):
        title = simpledialog.askstring("New board", "Title:", initialvalue="New Board", parent=self)
        if title is not None:
            self._run("New board", self.controller.add_board, title)

    def _rename_board(self):
        board = self.controller.selection.selected_board
        if not board:
            return
        title = simpledialog.askstring("Rename board", "Title:", initialvalue=board.title, parent=self)
        if title is not None:
            self._run("Rename board", self.controller.rename_board, board.id, title)

    def _remove_board(self):
        board = self.controller.selection.selected_board
        if board and mb.askyesno("Delete board", f"Delete '{board.title}' and all its tasks?"):
            self._run("Delete board", self.controller.remove_board, board.id)

    # ---------- columns ----------
    def _add_column(self):
        self._run("New column", self.controller.add_column)

    def _rename_column(self, column_id: str):
        _, column = self.controller.store.find_column(column_id)
        title = simpledialog.askstring("Rename column", "Title:", initialvalue=column.title, parent=self)
        if title is not None:
            self._run("Rename column", self.controller.rename_column, column_id, title)

    def _remove_column(self, column_id: str):
        if mb.askyesno("Delete column", "Delete this column and its tasks?"):
            self._run("Delete column", self.controller.remove_column, column_id)

    # ---------- members ----------
    def _add_member(self, event=None):
        name = self.member_entry.get().strip()
        if not name:
            return
        color = MEMBER_COLORS[len(self.controller.store.members) % len(MEMBER_COLORS)]
        self._run("Add member", self.controller.add_member, name, color)

    def _remove_member(self):
        member = self.controller.selection.selected_member
        if member and mb.askyesno("Remove member", f"Remove {member.name}? Their tasks are deleted too."):
            self._run("Remove member", self.controller.remove_member, member.id)

    def _select_member(self, member_id: str):
        self._run("Member", self.controller.selection.select_member, member_id)

    # ---------- tasks ----------
    def _add_task(self, column_id: str):
        self._run("New task", self.controller.add_task, column_id)

    def _select_task(self, task_id: str):
        self._run("Task", self.controller.selection.select_task, task_id)

    def _close_details(self):
        self.controller.selection.select_task(None)
        self.render()

    def _task_menu(self, task_id: str):
        menu = tk.Menu(self, tearoff=False)
        menu.add_command(label="Open", command=lambda: self._select_task(task_id))
        menu.add_command(label="Copy", command=lambda: self._run("Copy task", self.controller.copy_task, task_id))
        menu.add_command(label="Delete", command=lambda: self._run("Delete task", self.controller.remove_task, task_id))
        try:
            menu.tk_popup(self.winfo_pointerx(), self.winfo_pointery())
        finally:
            menu.grab_release()

    # ---------- misc ----------
    def _open_debug(self):
        DebugPanel(self, self.query_log)

    def _on_close(self):
        self.controller.close()
        self.destroy()
