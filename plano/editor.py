"""
Editor controller: everything a user can do, independent of how it is drawn.

The GUI (or a test) supplies two callbacks: ``confirm(message) -> bool`` for
destructive actions and ``ask_edit(table) -> EditForm | None`` for the edit
dialog.
"""
import logging

from plano.client import ApiConnectionError, ApiResponseError, LayoutClient
from plano.floorplan import EditForm, FloorPlan
from plano.notifications import Notifier
from plano.summary import LayoutSummary
from plano.sync import LayoutSync

logger = logging.getLogger(__name__)


def _always(message):
    return True


class LayoutEditor:
    def __init__(self, client=None, floorplan=None, notifier=None,
                 confirm=_always, ask_edit=EditForm.from_table):
        self.client = client or LayoutClient()
        self.floorplan = floorplan or FloorPlan()
        self.notifier = notifier or Notifier()
        self.summary = LayoutSummary(self.floorplan)
        self.sync = LayoutSync(self.client, self.floorplan, self.summary, self.notifier)
        self.confirm = confirm
        self.ask_edit = ask_edit
        self.session = None
        self.editing_visible = False

    def notify(self, message, success=True):
        return self.notifier.notify(message, success)

    # -------------------------
    # Session
    # -------------------------
    def login(self, name, password) -> bool:
        if not name or not password:
            self.notify("Por favor, complete todos los campos", False)
            return False

        try:
            session, message = self.client.login(name, password)
        except ApiResponseError as exc:
            self.notify(exc.message, False)
            return False
        except ApiConnectionError as exc:
            logger.error("Error en login: %s", exc)
            self.notify("No se pudo conectar con el servidor", False)
            return False

        self.session = session
        self.editing_visible = True
        logger.info("Logged in to restaurant %s", session.restaurant_id)
        self.notify(message or "Login correcto!")
        self.load()
        return True

    def _require_session(self):
        if self.session is None:
            self.notify("Inicia sesión primero", False)
            return False
        return True

    # -------------------------
    # Persistence
    # -------------------------
    def load(self) -> bool:
        if not self._require_session():
            return False
        return self.sync.load(self.session)

    def save(self) -> bool:
        if len(self.floorplan) and not self._require_session():
            return False
        return self.sync.save(self.session)

    # -------------------------
    # Table actions
    # -------------------------
    def add_table(self, **properties):
        return self.floorplan.create(**properties)

    def add_tables(self, n) -> list:
        created = self.floorplan.bulk_create(n)
        if created:
            self.notify(f"{len(created)} mesas creadas")
        return created

    def arrange(self):
        if not len(self.floorplan):
            return
        self.floorplan.auto_arrange()
        self.notify("Mesas organizadas automáticamente")

    def delete_table(self, table) -> bool:
        if not self.confirm("¿Quieres eliminar esta mesa?"):
            return False
        self.floorplan.remove(table)
        self.notify("Mesa eliminada")
        return True

    def edit_table(self, table) -> dict:
        form = self.ask_edit(table)
        return self.floorplan.edit(table, form)

    def move_table(self, table, dx, dy):
        self.floorplan.drag(table, dx, dy)

    def resize_table(self, table, edges, dx, dy):
        self.floorplan.resize(table, edges, dx, dy)
