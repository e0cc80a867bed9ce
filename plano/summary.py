"""Tabular listing of the tables on the floor plan."""

COLUMNS = ("#", "Nombre", "Min. Personas", "Max. Personas", "Reservas")


class LayoutSummary:
    def __init__(self, floorplan):
        self.floorplan = floorplan
        self.rows = None  # None until the container exists
        self.reservations = {}  # server table id -> reservation count
        self._listeners = []
        floorplan.subscribe(self.refresh)

    @property
    def exists(self) -> bool:
        return self.rows is not None

    def subscribe(self, callback):
        self._listeners.append(callback)

    def ensure_exists(self):
        """Create the (empty) summary the first time it is needed."""
        if self.rows is None:
            self.rows = []
            self.refresh()

    def set_reservations(self, counts):
        self.reservations = dict(counts)
        self.refresh()

    def refresh(self):
        """Recompute every row from the current tables; numbering follows plan order."""
        if self.rows is None:
            return

        rows = []
        for index, table in enumerate(self.floorplan.tables, start=1):
            rows.append((
                index,
                table.name,
                "-" if table.min_capacity is None else table.min_capacity,
                "-" if table.max_capacity is None else table.max_capacity,
                self.reservations.get(str(table.server_id), 0) if table.server_id else 0,
            ))
        self.rows = rows
        for callback in self._listeners:
            callback(rows)
