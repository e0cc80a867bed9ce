"""Load and save against the in-memory backend."""
import pytest

from plano.notifications import Notifier
from plano.summary import LayoutSummary
from plano.sync import LayoutSync, count_reservations


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def summary(floorplan):
    return LayoutSummary(floorplan)


@pytest.fixture
def sync(client, floorplan, summary, notifier):
    return LayoutSync(client, floorplan, summary, notifier)


def table_requests(backend):
    return [r for r in backend.config["REQUESTS"] if r[1].startswith("/tables")]


def test_load_renders_every_record(sync, session, stored_table, floorplan, summary, notifier):
    stored_table(nombre="A", pos_x=10.0)
    stored_table(nombre="B", forma="circulo")
    stored_table(nombre="C", min_personas=None)

    assert sync.load(session)

    assert [t.name for t in floorplan] == ["A", "B", "C"]
    assert len(summary.rows) == len(floorplan) == 3
    assert summary.rows[2] == (3, "C", "-", 4, 0)
    assert notifier.last.message == "Plano cargado correctamente!"


def test_load_failure_keeps_current_tables(sync, session, floorplan, notifier, backend):
    floorplan.bulk_create(2)
    backend.config["ACCOUNTS"]["Bistro"]["access_token"] = "rotated"

    assert not sync.load(session)

    assert len(floorplan) == 2
    assert notifier.last.message == "Error cargando mesas"
    assert not notifier.last.success
    assert not sync.busy


def test_load_counts_reservations(sync, session, stored_table, backend, summary):
    first = stored_table(nombre="A")
    stored_table(nombre="B")
    backend.config["RESERVATIONS"].extend([
        {"id": 1, "id_restaurante": session.restaurant_id, "id_mesa": first["id"]},
        {"id": 2, "id_restaurante": session.restaurant_id, "id_mesa": first["id"]},
    ])

    sync.load(session)

    assert [row[4] for row in summary.rows] == [2, 0]


def test_count_reservations_skips_missing_table():
    assert count_reservations([{"id_mesa": 7}, {"id_mesa": 7}, {"id_mesa": None}, {}]) == {"7": 2}


def test_save_without_tables_makes_no_requests(sync, session, backend, notifier):
    assert not sync.save(session)
    assert backend.config["REQUESTS"] == []
    assert notifier.last.message == "No hay mesas para guardar"


def test_save_replaces_server_layout(sync, session, stored_table, floorplan, backend, notifier):
    stored_table(nombre="Vieja")
    floorplan.create(name="Nueva 1")
    floorplan.create(name="Nueva 2", shape="circulo")

    assert sync.save(session)

    stored = backend.config["TABLES"]
    assert [t["nombre"] for t in stored] == ["Nueva 1", "Nueva 2"]
    assert all(t["reservable"] for t in stored)
    assert table_requests(backend) == [
        ("GET", "/tables"),
        ("DELETE", "/tables/clear"),
        ("POST", "/tables"),
        ("POST", "/tables"),
    ]
    assert notifier.last.message == "Plano guardado correctamente!"


def test_save_then_load_round_trips(sync, session, floorplan):
    table = floorplan.create(name="Ventana", x=130, y=40, width=95, height=60,
                             min_capacity=3, max_capacity=6, shape="circulo")
    floorplan.drag(table, 12, 7)
    floorplan.resize(table, {"right"}, 15, 0)

    sync.save(session)
    sync.load(session)

    (loaded,) = floorplan.tables
    assert (loaded.left, loaded.top, loaded.width, loaded.height) == (142, 47, 110, 60)
    assert (loaded.min_capacity, loaded.max_capacity, loaded.shape) == (3, 6, "circulo")
    assert loaded.name == "Ventana"


def test_invalid_layout_is_not_uploaded(sync, session, stored_table, floorplan, backend, notifier):
    stored_table(nombre="Vieja")
    floorplan.create(name="Doble")
    floorplan.create(name="Doble")

    assert not sync.save(session)

    assert table_requests(backend) == []
    assert [t["nombre"] for t in backend.config["TABLES"]] == ["Vieja"]
    assert notifier.last.message == "Ya existe una mesa con el nombre 'Doble'"


def test_failed_upload_stops_and_restores_previous_layout(sync, session, stored_table, floorplan, backend, notifier):
    stored_table(nombre="Vieja 1")
    stored_table(nombre="Vieja 2", forma="circulo")
    floorplan.bulk_create(3)
    backend.config["FAIL_CREATE_AFTER"] = 1

    def recover_after_failure(note):
        if note.message == "Error guardando mesa":
            backend.config["FAIL_CREATE_AFTER"] = None
    notifier.subscribe(recover_after_failure)

    assert not sync.save(session)

    posts = [r for r in table_requests(backend) if r[0] == "POST"]
    # one good upload, the failing one, then the two restored tables
    assert len(posts) == 4
    stored = backend.config["TABLES"]
    assert [t["nombre"] for t in stored] == ["Vieja 1", "Vieja 2"]
    assert stored[1]["forma"] == "circulo"
    assert notifier.last.message == "Se ha restaurado el plano anterior"
    assert len(floorplan) == 3


def test_failed_restore_is_reported(sync, session, stored_table, floorplan, backend, notifier):
    stored_table(nombre="Vieja")
    floorplan.bulk_create(2)
    backend.config["FAIL_CREATE_AFTER"] = 0

    assert not sync.save(session)

    assert backend.config["TABLES"] == []
    messages = [n.message for n in notifier.history]
    assert messages[-2:] == ["Error guardando mesa", "No se pudo restaurar el plano anterior"]


def test_busy_sync_rejects_second_call(sync, session, floorplan, backend, notifier):
    floorplan.create()
    sync.busy = True

    assert not sync.save(session)
    assert not sync.load(session)
    assert backend.config["REQUESTS"] == []
    assert notifier.last.message == "Operación en curso, espera a que termine"


def test_save_keeps_ids_of_new_records(sync, session, stored_table, backend, floorplan, summary):
    old = stored_table(nombre="A")
    backend.config["RESERVATIONS"].append(
        {"id": 1, "id_restaurante": session.restaurant_id, "id_mesa": old["id"]}
    )
    sync.load(session)
    assert summary.rows[0][4] == 1

    assert sync.save(session)

    (stored,) = backend.config["TABLES"]
    (table,) = floorplan.tables
    assert table.server_id == stored["id"] != old["id"]
    assert summary.rows == [(1, "A", 2, 4, 0)]
