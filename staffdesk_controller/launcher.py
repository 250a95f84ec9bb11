"""Tk demo: a "New Employee" form driven by keyboard navigation and guarded by the inactivity timeout."""

from __future__ import annotations

import argparse
import logging
import os
import sys
import tkinter as tk
from pathlib import Path
from tkinter import messagebox, ttk
from typing import Callable, Optional

from staffdesk_client.logging_utils import configure_logging
from staffdesk_controller.controller import build_app_context
from staffdesk_controller.services import Notice
from staffdesk_controller.tk_host import mark

LOGGER = logging.getLogger("StaffDesk.Controller")


class EmployeeFormWindow:
    """Builds the demo form; the sign-out hook only drops the local user."""

    def __init__(self, root: tk.Tk) -> None:
        self.root = root
        self.signed_in = True
        self.on_login: Optional[Callable[[], None]] = None
        self.root.title("StaffDesk - New Employee")

        self.auth_frame = ttk.Frame(root, padding=24)
        ttk.Label(self.auth_frame, text="Signed out. Please log in again.").pack()
        ttk.Button(self.auth_frame, text="Log in", command=self._log_in).pack(pady=(12, 0))

        self.form = ttk.Frame(root, padding=16)
        mark(self.form, form=True)
        self.form.columnconfigure(1, weight=1)
        rows = (("First Name", ttk.Entry), ("Last Name", ttk.Entry), ("Email", ttk.Entry))
        for row, (label, factory) in enumerate(rows):
            ttk.Label(self.form, text=label).grid(row=row, column=0, sticky="w", pady=2)
            factory(self.form).grid(row=row, column=1, sticky="ew", pady=2)

        ttk.Label(self.form, text="Department").grid(row=3, column=0, sticky="w", pady=2)
        department = ttk.Combobox(self.form, values=("Engineering", "Finance", "People"), state="readonly")
        department.grid(row=3, column=1, sticky="ew", pady=2)

        ttk.Label(self.form, text="Profile Picture").grid(row=4, column=0, sticky="w", pady=2)
        self.picture = ttk.Button(self.form, text="Choose file...")
        mark(self.picture, tag="input", type="file")
        self.picture.grid(row=4, column=1, sticky="w", pady=2)

        buttons = ttk.Frame(self.form)
        buttons.grid(row=5, column=0, columnspan=2, sticky="e", pady=(12, 0))
        cancel = ttk.Button(buttons, text="Cancel", command=self._cancel)
        cancel.pack(side="left", padx=4)
        submit = ttk.Button(buttons, text="Add Employee", command=self._submit)
        mark(submit, type="submit")
        submit.pack(side="left")

        self.form.pack(fill="both", expand=True)

    def sign_out(self) -> None:
        self.signed_in = False

    def notify(self, notice: Notice) -> None:
        messagebox.showwarning(notice.title, notice.description, parent=self.root)

    def navigate(self, route: str) -> None:
        LOGGER.info("Navigating to %s", route)
        self.form.pack_forget()
        self.auth_frame.pack(fill="both", expand=True)

    def _log_in(self) -> None:
        self.signed_in = True
        self.auth_frame.pack_forget()
        self.form.pack(fill="both", expand=True)
        if self.on_login is not None:
            self.on_login()

    def _cancel(self) -> None:
        self.root.destroy()

    def _submit(self) -> None:
        messagebox.showinfo("Employee", "Employee added.", parent=self.root)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="StaffDesk keyboard form demo")
    parser.add_argument("--config-dir", help="Directory holding session_settings.json and keybindings.json")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    configure_logging("staffdesk_controller.log", debug=True if args.debug else None)
    config_dir = Path(args.config_dir or os.getenv("STAFFDESK_CONFIG_DIR") or Path.cwd()).expanduser().resolve()
    LOGGER.info("Starting StaffDesk demo (pid=%s, config=%s)", os.getpid(), config_dir)

    root = tk.Tk()
    window = EmployeeFormWindow(root)
    try:
        ctx = build_app_context(
            root_path=config_dir,
            tk_root=root,
            sign_out=window.sign_out,
            notify=window.notify,
            navigate=window.navigate,
        )
    except ValueError as exc:
        LOGGER.error("Invalid configuration: %s", exc)
        root.destroy()
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    window.on_login = lambda: ctx.sign_in({"role": "admin"})
    if ctx.start():
        window.navigate(ctx.settings.auth_route)
    try:
        root.mainloop()
    finally:
        ctx.unmount()
    LOGGER.info("StaffDesk demo exiting")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
