import tkinter as tk
from tkinter import ttk, messagebox as mb
from core.exceptions import ApiError
from services.query_log import QueryLog


class DebugPanel(tk.Toplevel):
    """Statements the server ran, oldest first."""
    def __init__(self, master, log: QueryLog):
        super().__init__(master)
        self.log = log
        self.title("Query log")
        self.geometry("760x320")

        bar = ttk.Frame(self, padding=4)
        bar.pack(fill="x")
        ttk.Button(bar, text="Refresh", command=self.refresh).pack(side="left")
        ttk.Button(bar, text="Clear", command=self._clear).pack(side="left", padx=4)
        self.count_var = tk.StringVar(value="")
        ttk.Label(bar, textvariable=self.count_var).pack(side="right")

        self.tree = ttk.Treeview(self, columns=("type", "time", "query"), show="headings")
        for col, width in (("type", 70), ("time", 170), ("query", 500)):
            self.tree.heading(col, text=col.title())
            self.tree.column(col, width=width, anchor="w")
        self.tree.tag_configure("error", foreground="#B00020")
        self.tree.pack(fill="both", expand=True)

        for entry in self.log.entries:
            self._append(entry)
        self.refresh()

    def _append(self, entry):
        text = " ".join(entry.query.split())
        if entry.error:
            text = f"{text}  ⟶ {entry.error}"
        self.tree.insert("", "end", values=(entry.type, entry.timestamp, text),
                         tags=("error",) if entry.type == "ERROR" else ())

    def refresh(self):
        try:
            new = self.log.refresh()
        except ApiError as e:
            self.count_var.set(f"unavailable: {e}")
            return
        for entry in new:
            self._append(entry)
        self.count_var.set(f"{len(self.log.entries)} queries · {len(self.log.errors())} errors")

    def _clear(self):
        try:
            self.log.clear()
        except ApiError as e:
            mb.showerror("Query log", str(e))
            return
        self.tree.delete(*self.tree.get_children())
        self.count_var.set("0 queries")
