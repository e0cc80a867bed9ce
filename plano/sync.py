"""
Loading the persisted layout into the floor plan and writing it back.

The backend only offers "clear everything" and "create one table", so a save
is a clear followed by one create per table. To avoid leaving a restaurant
with half a layout:

- the batch is checked first for what the backend is known to reject,
- the server layout is read back before clearing it,
- uploads stop at the first failure and the previous layout is restored.
"""
import logging
from collections import Counter

from plano.client import LayoutApiError

logger = logging.getLogger(__name__)

FIELDS = ("nombre", "pos_x", "pos_y", "size_x", "size_y",
          "forma", "reservable", "min_personas", "max_personas")


class LayoutBusyError(RuntimeError):
    pass


def count_reservations(reservations) -> dict:
    """Reservations per table id (as text, ids come back as ints or hex strings)."""
    return dict(Counter(str(r["id_mesa"]) for r in reservations if r.get("id_mesa") is not None))


def _restore_record(record, restaurant_id):
    """Turn a record read from ``GET /tables`` back into a create body."""
    body = {field: record.get(field) for field in FIELDS}
    body["id_restaurante"] = restaurant_id
    body["tipo"] = record.get("tipo") or "mesa"
    if body["reservable"] is None:
        body["reservable"] = True
    return body


class LayoutSync:
    def __init__(self, client, floorplan, summary, notifier):
        self.client = client
        self.floorplan = floorplan
        self.summary = summary
        self.notifier = notifier
        self.busy = False

    def _start(self):
        if self.busy:
            raise LayoutBusyError("Another load or save is still running")
        self.busy = True

    def load(self, session) -> bool:
        """Replace the local layout with the one stored for ``session``'s restaurant."""
        try:
            self._start()
        except LayoutBusyError:
            self.notifier.notify("Operación en curso, espera a que termine", False)
            return False

        try:
            records = self.client.get_tables(session)
            self.summary.ensure_exists()
            self.floorplan.replace(records)
        except (LayoutApiError, KeyError, TypeError, ValueError) as exc:
            logger.error("Error cargando plano: %s", exc)
            self.notifier.notify("Error cargando mesas", False)
            return False
        finally:
            self.busy = False

        self._load_reservations(session)
        logger.info("Loaded %d tables for restaurant %s", len(records), session.restaurant_id)
        self.notifier.notify("Plano cargado correctamente!")
        return True

    def _load_reservations(self, session):
        try:
            reservations = self.client.get_reservations(session)
        except LayoutApiError as exc:
            logger.warning("Could not load reservations: %s", exc)
            self.summary.set_reservations({})
            return
        self.summary.set_reservations(count_reservations(reservations))

    def save(self, session) -> bool:
        """Replace the restaurant's stored layout with the tables on the floor plan."""
        if len(self.floorplan) == 0:
            self.notifier.notify("No hay mesas para guardar", False)
            return False

        errors = self.floorplan.validate()
        if errors:
            logger.warning("Layout not saved: %s", "; ".join(errors))
            self.notifier.notify(errors[0], False)
            return False

        try:
            self._start()
        except LayoutBusyError:
            self.notifier.notify("Operación en curso, espera a que termine", False)
            return False

        try:
            return self._replace_remote(session)
        finally:
            self.busy = False

    def _replace_remote(self, session):
        restaurant_id = session.restaurant_id
        tables = list(self.floorplan)
        records = [table.to_record(restaurant_id) for table in tables]

        try:
            previous = self.client.get_tables(session)
            self.client.clear_tables(session)
        except LayoutApiError as exc:
            logger.error("Error guardando plano: %s", exc)
            self.notifier.notify(getattr(exc, "message", None) or "Error guardando plano", False)
            return False

        # ids and reservation counts of the cleared tables no longer apply
        for table in tables:
            table.server_id = None
        self.summary.set_reservations({})

        for uploaded, (table, record) in enumerate(zip(tables, records)):
            try:
                created = self.client.create_table(session, record)
            except LayoutApiError as exc:
                logger.error("Upload of %r failed after %d tables: %s", record["nombre"], uploaded, exc)
                self.notifier.notify(getattr(exc, "message", None) or "Error guardando plano", False)
                self._restore(session, previous)
                return False
            table.server_id = created.get("id") if isinstance(created, dict) else None

        logger.info("Saved %d tables for restaurant %s", len(records), restaurant_id)
        self.notifier.notify("Plano guardado correctamente!")
        return True

    def _restore(self, session, previous):
        """Put back the layout that was stored before the failed save."""
        try:
            self.client.clear_tables(session)
            for record in previous:
                self.client.create_table(session, _restore_record(record, session.restaurant_id))
        except LayoutApiError as exc:
            logger.error("Could not restore previous layout (%d tables): %s", len(previous), exc)
            self.notifier.notify("No se pudo restaurar el plano anterior", False)
            return False
        logger.info("Restored previous layout (%d tables)", len(previous))
        self.notifier.notify("Se ha restaurado el plano anterior", False)
        return True
