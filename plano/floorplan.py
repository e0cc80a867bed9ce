"""
In-memory floor plan: the single source of truth for table geometry and
properties. Views subscribe to changes and redraw from it.
"""
import logging
import math

from plano import config

logger = logging.getLogger(__name__)

DEFAULT_SHAPE = "cuadrado"
EDGES = ("left", "right", "top", "bottom")


class LayoutValidationError(ValueError):
    """Raised when the current layout cannot be uploaded as-is."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class Table:
    def __init__(self, number, name, x, y, width, height,
                 min_capacity=2, max_capacity=4, shape=DEFAULT_SHAPE,
                 server_id=None):
        self.number = number
        self.name = name
        self.x = x
        self.y = y
        self.offset_x = 0
        self.offset_y = 0
        self.width = width
        self.height = height
        self.min_capacity = min_capacity
        self.max_capacity = max_capacity
        self.shape = shape
        self.reservable = True
        self.server_id = server_id

    @property
    def left(self):
        return self.x + self.offset_x

    @property
    def top(self):
        return self.y + self.offset_y

    @property
    def is_circle(self) -> bool:
        return self.shape == "circulo"

    def to_record(self, restaurant_id) -> dict:
        """Body for ``POST /tables``, using the position on screen."""
        return {
            "id_restaurante": restaurant_id,
            "tipo": "mesa",
            "nombre": self.name,
            "pos_x": self.left,
            "pos_y": self.top,
            "size_x": self.width,
            "size_y": self.height,
            "forma": self.shape or DEFAULT_SHAPE,
            "reservable": True,
            "min_personas": self.min_capacity,
            "max_personas": self.max_capacity,
        }

    def __repr__(self):
        return f"<Table {self.number} {self.name!r} at ({self.left}, {self.top})>"


class EditForm:
    """Values typed into the edit dialog. Blank fields leave the table as is."""

    def __init__(self, name=None, min_capacity=None, max_capacity=None, shape=None):
        self.name = name
        self.min_capacity = min_capacity
        self.max_capacity = max_capacity
        self.shape = shape

    @classmethod
    def from_table(cls, table):
        return cls(
            name=table.name,
            min_capacity=table.min_capacity,
            max_capacity=table.max_capacity,
            shape=table.shape,
        )


def _as_int(value):
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def grid_position(index, floor_width):
    """Top-left corner of grid cell ``index`` for a floor plan ``floor_width`` wide."""
    margin = config.GRID_MARGIN
    size = config.TABLE_SIZE
    per_row = max(1, math.floor((floor_width - margin) / (size + margin)))
    row = index // per_row
    column = index % per_row
    return margin + column * (size + margin), margin + row * (size + margin)


class FloorPlan:
    def __init__(self, width=config.FLOOR_WIDTH, height=config.FLOOR_HEIGHT):
        self.width = width
        self.height = height
        self.tables = []
        self.next_number = 1
        self._listeners = []

    # -------------------------
    # Change notification
    # -------------------------
    def subscribe(self, callback):
        self._listeners.append(callback)

    def _changed(self):
        for callback in self._listeners:
            callback()

    def __len__(self):
        return len(self.tables)

    def __iter__(self):
        return iter(self.tables)

    # -------------------------
    # Creation / removal
    # -------------------------
    def _new_table(self, name=None, x=100, y=100, width=80, height=80,
                   min_capacity=2, max_capacity=4, shape=DEFAULT_SHAPE,
                   server_id=None, others=None):
        if not name:
            # skip numbers whose default name is already on the plan
            taken = {t.name for t in (self.tables if others is None else others)}
            while f"Mesa {self.next_number}" in taken:
                self.next_number += 1
        number = self.next_number
        self.next_number += 1
        return Table(
            number,
            name or f"Mesa {number}",
            x, y, width, height,
            min_capacity=min_capacity,
            max_capacity=max_capacity,
            shape=shape or DEFAULT_SHAPE,
            server_id=server_id,
        )

    def create(self, name=None, x=100, y=100, width=80, height=80,
               min_capacity=2, max_capacity=4, shape=DEFAULT_SHAPE) -> Table:
        table = self._new_table(name, x, y, width, height, min_capacity, max_capacity, shape)
        self.tables.append(table)
        self._changed()
        return table

    def bulk_create(self, n) -> list:
        """Create ``n`` default tables laid out on the grid. Bad counts create nothing."""
        try:
            count = int(n)
        except (TypeError, ValueError):
            return []
        if count <= 0:
            return []

        size = config.TABLE_SIZE
        created = []
        for i in range(count):
            x, y = grid_position(i, self.width)
            table = self._new_table(None, x, y, size, size)
            self.tables.append(table)
            created.append(table)
        self._changed()
        return created

    def remove(self, table):
        self.tables.remove(table)
        self._changed()

    def replace(self, records):
        """Rebuild the whole plan from backend records, in the order given.

        Records are all converted before anything is swapped, so a malformed
        record leaves the current tables untouched.
        """
        previous_number = self.next_number
        self.next_number = 1
        try:
            tables = []
            for record in records:
                tables.append(self._from_record(record, tables))
        except (KeyError, TypeError, ValueError):
            self.next_number = previous_number
            raise
        self.tables = tables
        self._changed()
        return tables

    def _from_record(self, record, others):
        return self._new_table(
            record.get("nombre"),
            float(record["pos_x"]),
            float(record["pos_y"]),
            float(record["size_x"]),
            float(record["size_y"]),
            min_capacity=record.get("min_personas", 2),
            max_capacity=record.get("max_personas", 4),
            shape=record.get("forma", DEFAULT_SHAPE),
            server_id=record.get("id"),
            others=others,
        )

    # -------------------------
    # Direct manipulation
    # -------------------------
    def drag(self, table, dx, dy):
        """Translate by (dx, dy), keeping the whole table inside the floor plan."""
        left = max(0, min(table.left + dx, self.width - table.width))
        top = max(0, min(table.top + dy, self.height - table.height))
        table.offset_x = left - table.x
        table.offset_y = top - table.y
        self._changed()

    def resize(self, table, edges, dx, dy):
        """Move the given edges by (dx, dy). Not clamped to the floor plan."""
        minimum = config.MIN_TABLE_SIZE
        unknown = set(edges) - set(EDGES)
        if unknown:
            raise ValueError(f"Unknown edges: {sorted(unknown)}")

        if "right" in edges:
            table.width = max(minimum, table.width + dx)
        if "left" in edges:
            dx = min(dx, table.width - minimum)
            table.x += dx
            table.width -= dx
        if "bottom" in edges:
            table.height = max(minimum, table.height + dy)
        if "top" in edges:
            dy = min(dy, table.height - minimum)
            table.y += dy
            table.height -= dy
        self._changed()

    def auto_arrange(self):
        for index, table in enumerate(self.tables):
            table.x, table.y = grid_position(index, self.width)
            table.offset_x = 0
            table.offset_y = 0
        self._changed()

    def edit(self, table, form) -> dict:
        """Apply an :class:`EditForm` and return the fields that changed.

        ``form=None`` means the dialog was cancelled. Max below min is
        rejected and an unknown shape is ignored; the other fields still apply.
        """
        if form is None:
            return {}

        changes = {}
        if form.name and str(form.name).strip():
            changes["name"] = str(form.name).strip()

        new_min = _as_int(form.min_capacity)
        new_max = _as_int(form.max_capacity)
        if new_max is None:
            ceiling = table.max_capacity
        else:
            ceiling = new_max
        if new_min is not None and new_min > 0:
            if ceiling is None or new_min <= ceiling:
                changes["min_capacity"] = new_min
            else:
                logger.info("Rejected min capacity %s for %s (max %s)", new_min, table.name, ceiling)

        effective_min = changes.get("min_capacity", table.min_capacity)
        if new_max is not None:
            if effective_min is not None and new_max >= effective_min:
                changes["max_capacity"] = new_max
            else:
                logger.info("Rejected max capacity %s for %s (min %s)", new_max, table.name, effective_min)

        if form.shape in config.SHAPES:
            changes["shape"] = form.shape

        changes = {k: v for k, v in changes.items() if getattr(table, k) != v}
        for field, value in changes.items():
            setattr(table, field, value)
        self._changed()
        return changes

    # -------------------------
    # Upload checks
    # -------------------------
    def validate(self) -> list:
        """Problems the backend would reject, so they can be caught before clearing it."""
        errors = []
        seen = set()
        for table in self.tables:
            name = (table.name or "").strip()
            label = name or f"Mesa n.º {table.number}"
            if not name:
                errors.append(f"{label}: el nombre de la mesa es requerido")
            elif name in seen:
                errors.append(f"Ya existe una mesa con el nombre '{name}'")
            seen.add(name)

            if table.shape not in config.SHAPES:
                errors.append(f"{label}: la forma debe ser 'cuadrado' o 'circulo'")

            if (table.min_capacity is not None and table.max_capacity is not None
                    and table.min_capacity > table.max_capacity):
                errors.append(f"{label}: el mínimo de personas no puede ser mayor al máximo")
        return errors
