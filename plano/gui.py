"""
tkinter front end for the floor-plan editor: login form, floor plan canvas
with drag/resize/delete/edit, summary table and toast notifications.
"""
import logging
import tkinter as tk
from tkinter import messagebox, simpledialog, ttk

from plano import config
from plano.editor import LayoutEditor
from plano.floorplan import EditForm
from plano.summary import COLUMNS

logger = logging.getLogger(__name__)


class EditTableDialog(simpledialog.Dialog):
    """Name, capacity and shape form. ``result`` is an EditForm, or None if cancelled."""

    def __init__(self, parent, table):
        self.table = table
        super().__init__(parent, title=f"Editar {table.name}")

    def body(self, master):
        self.name_var = tk.StringVar(value=self.table.name)
        self.min_var = tk.StringVar(value=str(self.table.min_capacity or ""))
        self.max_var = tk.StringVar(value=str(self.table.max_capacity or ""))
        self.shape_var = tk.StringVar(value=self.table.shape)

        fields = [
            ("Nombre de la mesa:", ttk.Entry(master, textvariable=self.name_var, width=24)),
            ("Número mínimo de personas:", ttk.Entry(master, textvariable=self.min_var, width=6)),
            ("Número máximo de personas:", ttk.Entry(master, textvariable=self.max_var, width=6)),
            ("Forma:", ttk.Combobox(master, textvariable=self.shape_var, values=config.SHAPES, width=10)),
        ]
        for row, (label, widget) in enumerate(fields):
            tk.Label(master, text=label, anchor=tk.W).grid(row=row, column=0, sticky=tk.W, padx=5, pady=3)
            widget.grid(row=row, column=1, sticky=tk.W, padx=5, pady=3)
        return fields[0][1]

    def apply(self):
        self.result = EditForm(
            name=self.name_var.get(),
            min_capacity=self.min_var.get(),
            max_capacity=self.max_var.get(),
            shape=self.shape_var.get().strip(),
        )


class FloorPlanCanvas(tk.Canvas):
    """Draws the floor plan and turns pointer gestures into editor actions."""

    def __init__(self, master, editor, **kwargs):
        floorplan = editor.floorplan
        super().__init__(master, width=floorplan.width, height=floorplan.height,
                         bg="#f5f5f5", highlightthickness=1, highlightbackground="#cccccc", **kwargs)
        self.editor = editor
        self._grab = None  # (table, edges, last_x, last_y) while a button is held

        self.bind("<ButtonPress-1>", self.on_press)
        self.bind("<B1-Motion>", self.on_motion)
        self.bind("<ButtonRelease-1>", self.on_release)
        self.bind("<Double-Button-1>", self.on_double_click)
        self.bind("<Button-3>", self.on_context_menu)

        floorplan.subscribe(self.redraw)
        self.redraw()

    def table_at(self, x, y):
        for item in reversed(self.find_overlapping(x, y, x, y)):
            for tag in self.gettags(item):
                if tag.startswith("table_"):
                    number = int(tag[len("table_"):])
                    return next((t for t in self.editor.floorplan if t.number == number), None)
        return None

    @staticmethod
    def edges_at(table, x, y):
        """Which edges of ``table`` are within grabbing distance of (x, y)."""
        handle = config.RESIZE_HANDLE
        edges = set()
        if abs(x - table.left) <= handle:
            edges.add("left")
        if abs(x - (table.left + table.width)) <= handle:
            edges.add("right")
        if abs(y - table.top) <= handle:
            edges.add("top")
        if abs(y - (table.top + table.height)) <= handle:
            edges.add("bottom")
        return edges

    def draw_table(self, table):
        x0, y0 = table.left, table.top
        x1, y1 = x0 + table.width, y0 + table.height
        tags = ("table", f"table_{table.number}")

        if table.is_circle:
            self.create_oval(x0, y0, x1, y1, fill="#C8E6C9", outline="#4CAF50", width=2, tags=tags)
        else:
            self.create_rectangle(x0, y0, x1, y1, fill="#C8E6C9", outline="#4CAF50", width=2, tags=tags)

        self.create_text(
            (x0 + x1) / 2, (y0 + y1) / 2,
            text=table.name,
            width=max(table.width - 4, 10),
            font=("Arial", 10, "bold"),
            fill="#333333",
            tags=tags,
        )

    def redraw(self):
        self.delete("all")
        for table in self.editor.floorplan:
            self.draw_table(table)

    def on_press(self, event):
        table = self.table_at(event.x, event.y)
        if table is None:
            self._grab = None
            return
        self._grab = (table, self.edges_at(table, event.x, event.y), event.x, event.y)

    def on_motion(self, event):
        if self._grab is None:
            return
        table, edges, last_x, last_y = self._grab
        dx, dy = event.x - last_x, event.y - last_y
        if edges:
            self.editor.resize_table(table, edges, dx, dy)
        else:
            self.editor.move_table(table, dx, dy)
        self._grab = (table, edges, event.x, event.y)

    def on_release(self, event):
        self._grab = None

    def on_double_click(self, event):
        table = self.table_at(event.x, event.y)
        if table is not None:
            self.editor.edit_table(table)

    def on_context_menu(self, event):
        table = self.table_at(event.x, event.y)
        if table is not None:
            self.editor.delete_table(table)


class SummaryTable(ttk.Frame):
    def __init__(self, master, summary):
        super().__init__(master)
        tk.Label(self, text="Resumen de Mesas", font=("Arial", 12, "bold")).pack(anchor=tk.W)
        self.tree = ttk.Treeview(self, columns=COLUMNS, show="headings", height=8)
        for column in COLUMNS:
            self.tree.heading(column, text=column)
            self.tree.column(column, width=110 if column == "Nombre" else 90, anchor=tk.CENTER)
        self.tree.pack(fill=tk.X)
        summary.subscribe(self.show)

    def show(self, rows):
        self.tree.delete(*self.tree.get_children())
        for row in rows:
            self.tree.insert("", tk.END, values=row)


class EditorWindow:
    def __init__(self, root, editor=None):
        self.root = root
        self.root.title("Plano del Restaurante")
        self.editor = editor or LayoutEditor()
        self.editor.confirm = lambda message: messagebox.askyesno("Confirmar", message, parent=self.root)
        self.editor.ask_edit = lambda table: EditTableDialog(self.root, table).result
        self.editor.notifier.subscribe(self.show_toast)

        self.login_frame = self.create_login_form()
        self.login_frame.pack(padx=20, pady=20)
        self.plan_frame = self.create_plan_view()

    def create_login_form(self):
        frame = tk.Frame(self.root)
        self.name_var = tk.StringVar()
        self.password_var = tk.StringVar()

        tk.Label(frame, text="Restaurante:").grid(row=0, column=0, sticky=tk.W, pady=3)
        tk.Entry(frame, textvariable=self.name_var).grid(row=0, column=1, pady=3)
        tk.Label(frame, text="Contraseña:").grid(row=1, column=0, sticky=tk.W, pady=3)
        password = tk.Entry(frame, textvariable=self.password_var, show="*")
        password.grid(row=1, column=1, pady=3)
        password.bind("<Return>", lambda event: self.login())
        tk.Button(frame, text="Entrar", command=self.login,
                  bg="#4CAF50", fg="white", padx=10).grid(row=2, column=0, columnspan=2, pady=8)
        return frame

    def create_plan_view(self):
        frame = tk.Frame(self.root)

        panel = tk.Frame(frame, bg="#e8e8e8", pady=5)
        panel.pack(fill=tk.X, padx=10, pady=(10, 0))
        buttons = [
            ("Añadir mesa", self.editor.add_table),
            ("Añadir varias", self.ask_bulk_create),
            ("Organizar", self.editor.arrange),
            ("Guardar plano", self.editor.save),
            ("Recargar", self.editor.load),
        ]
        for text, command in buttons:
            tk.Button(panel, text=text, command=command, padx=10, pady=5).pack(side=tk.LEFT, padx=5)

        self.canvas = FloorPlanCanvas(frame, self.editor)
        self.canvas.pack(padx=10, pady=10)
        SummaryTable(frame, self.editor.summary).pack(fill=tk.X, padx=10, pady=(0, 10))
        return frame

    def login(self):
        if self.editor.login(self.name_var.get(), self.password_var.get()):
            self.login_frame.pack_forget()
            self.plan_frame.pack(fill=tk.BOTH, expand=True)

    def ask_bulk_create(self):
        answer = simpledialog.askstring("Añadir mesas", "¿Cuántas mesas quieres añadir?",
                                        initialvalue="10", parent=self.root)
        if answer is not None:
            self.editor.add_tables(answer)

    def show_toast(self, note):
        label = tk.Label(self.root, text=note.message, bg=note.color, fg="white", padx=20, pady=10)
        label.place(relx=1.0, x=-20, y=20, anchor=tk.NE)

        def dismiss():
            label.destroy()
            self.editor.notifier.dismiss(note)

        self.root.after(self.editor.notifier.delay_ms, dismiss)


def main():
    logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    root = tk.Tk()
    app = EditorWindow(root)
    try:
        root.mainloop()
    finally:
        app.editor.client.close()


if __name__ == "__main__":
    main()
