from __future__ import annotations

from typing import Callable, Optional

import tkinter as tk
from tkinter import messagebox, simpledialog, ttk

from .. import __version__
from ..deadline_store import DeadlineStore, DeadlineView
from ..scheduler import TimerFactory


class _AfterTimer:
    def __init__(self, root: tk.Misc, after_id: str) -> None:
        self._root = root
        self._after_id: Optional[str] = after_id

    def cancel(self) -> None:
        if self._after_id is not None:
            self._root.after_cancel(self._after_id)
            self._after_id = None


def tk_timer_factory(root: tk.Misc) -> TimerFactory:
    """Timer factory that runs callbacks on the Tk event loop."""

    def factory(delay: float, fn: Callable[[], None]) -> _AfterTimer:
        return _AfterTimer(root, root.after(int(delay * 1000), fn))

    return factory


class MenuApp:
    _LABEL_COLOR = "#d62d20"

    def __init__(self, store: DeadlineStore, root: Optional[tk.Tk] = None) -> None:
        self.store = store
        self.root = root or tk.Tk()
        self.root.title(f"Deadlines {__version__}")
        self.root.resizable(False, False)

        self._name_var = tk.StringVar()
        self._month_var = tk.StringVar()
        self._day_var = tk.StringVar()
        self._adding = False

        self._build_ui()
        self._subscription: Optional[int] = self.store.subscribe(self._render)
        self.store.start_day_watch(timer_factory=tk_timer_factory(self.root))

        self.root.bind_all("<Command-q>", lambda _e: self._on_close())
        self.root.bind_all("<Control-q>", lambda _e: self._on_close())
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)

    def _build_ui(self) -> None:
        frame = ttk.Frame(self.root, padding=(16, 12))
        frame.grid(row=0, column=0, sticky="nsew")
        frame.columnconfigure(0, weight=1)

        ttk.Label(frame, text="Deadlines", font=("TkDefaultFont", 14, "bold")).grid(
            row=0, column=0, sticky="w", pady=(0, 8)
        )

        self.add_row = ttk.Frame(frame)
        self.add_row.columnconfigure(0, weight=1)
        name_entry = ttk.Entry(self.add_row, textvariable=self._name_var, width=22)
        name_entry.grid(row=0, column=0, sticky="ew")
        month_entry = ttk.Entry(self.add_row, textvariable=self._month_var, width=3, justify="center")
        month_entry.grid(row=0, column=1, padx=(8, 0))
        ttk.Label(self.add_row, text="/", foreground=self._LABEL_COLOR).grid(row=0, column=2)
        day_entry = ttk.Entry(self.add_row, textvariable=self._day_var, width=3, justify="center")
        day_entry.grid(row=0, column=3)
        for entry in (name_entry, month_entry, day_entry):
            entry.bind("<Return>", lambda _e: self._submit_new())
        self._name_entry = name_entry

        self.rows_frame = ttk.Frame(frame)
        self.rows_frame.grid(row=2, column=0, sticky="ew")
        self.rows_frame.columnconfigure(0, weight=1)

        ttk.Separator(frame).grid(row=3, column=0, sticky="ew", pady=(8, 4))
        ttk.Button(frame, text="Add Deadline...", command=self._toggle_add_row).grid(
            row=4, column=0, sticky="ew"
        )
        ttk.Separator(frame).grid(row=5, column=0, sticky="ew", pady=4)
        ttk.Button(frame, text="Quit Deadlines", command=self._on_close).grid(row=6, column=0, sticky="ew")

    def _render(self, rows: list[DeadlineView]) -> None:
        for child in self.rows_frame.winfo_children():
            child.destroy()
        for index, row in enumerate(rows):
            name = ttk.Label(self.rows_frame, text=row.name)
            name.grid(row=index, column=0, sticky="w", pady=2)
            name.bind("<Double-Button-1>", lambda _e, r=row: self._rename(r))
            ttk.Label(self.rows_frame, text=row.label, foreground=self._LABEL_COLOR).grid(
                row=index, column=1, sticky="e", padx=(12, 4)
            )
            ttk.Button(
                self.rows_frame,
                text="Delete",
                width=6,
                command=lambda r=row: self.store.remove(r.id),
            ).grid(row=index, column=2, sticky="e")

    def _toggle_add_row(self) -> None:
        if self._adding:
            self._reset_add_row()
            return
        self._adding = True
        self.add_row.grid(row=1, column=0, sticky="ew", pady=(0, 6))
        self._name_entry.focus_set()

    def _reset_add_row(self) -> None:
        self._adding = False
        self._name_var.set("")
        self._month_var.set("")
        self._day_var.set("")
        self.add_row.grid_remove()

    def _submit_new(self) -> None:
        name = self._name_var.get()
        if not name.strip() or not self._month_var.get().strip() or not self._day_var.get().strip():
            return
        created = self.store.add_month_day(name, self._month_var.get(), self._day_var.get())
        if created is None:
            messagebox.showerror("Add Deadline", "Enter a real month and day (MM / DD).", parent=self.root)
            return
        self._reset_add_row()

    def _rename(self, row: DeadlineView) -> None:
        new_name = simpledialog.askstring(
            "Rename Deadline", "Deadline name", initialvalue=row.name, parent=self.root
        )
        if new_name is not None:
            self.store.rename(row.id, new_name)

    def _on_close(self) -> None:
        self.store.shutdown()
        if self._subscription is not None:
            self.store.unsubscribe(self._subscription)
            self._subscription = None
        self.root.destroy()

    def run(self) -> None:
        self.root.mainloop()


def run_menu_app(store: DeadlineStore) -> None:
    app = MenuApp(store)
    app.run()
