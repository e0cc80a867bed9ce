"""
In-memory stand-in for the restaurant backend, used by the test suite.

Implements login, the three table endpoints and reservation listing with the
same status codes and error bodies as the real service.
"""
import itertools
import uuid

from flask import Flask, jsonify, request

SHAPES = ("cuadrado", "circulo")


def _error(status, error, message):
    return jsonify({"error": error, "message": message}), status


def create_app(restaurants=None):
    """Build a fresh backend.

    ``restaurants`` maps name -> password. Every restaurant gets an id and a
    token derived from its name.
    """
    app = Flask(__name__)
    app.config["TESTING"] = True

    restaurants = restaurants or {"Bistro": "secret"}
    accounts = {}
    for name, password in restaurants.items():
        accounts[name] = {
            "id": uuid.uuid5(uuid.NAMESPACE_DNS, name).hex[:24],
            "password": password,
            "access_token": f"token-{name}",
        }

    tables = []       # stored table records, all restaurants
    reservations = []
    requests_log = []
    ids = itertools.count(1)

    app.config["ACCOUNTS"] = accounts
    app.config["TABLES"] = tables
    app.config["RESERVATIONS"] = reservations
    app.config["REQUESTS"] = requests_log
    # Number of successful creates after which POST /tables starts failing
    app.config["FAIL_CREATE_AFTER"] = None

    def restaurant_for_token():
        header = request.headers.get("Authorization", "")
        if not header.startswith("Bearer "):
            return None
        token = header[len("Bearer "):]
        return next((a for a in accounts.values() if a["access_token"] == token), None)

    def restaurant_tables(restaurant_id):
        return [t for t in tables if t["id_restaurante"] == restaurant_id]

    @app.before_request
    def log_request():
        requests_log.append((request.method, request.path))

    @app.route("/restaurants/login", methods=["POST"])
    def login():
        data = request.get_json(silent=True) or {}
        name = data.get("name") or ""
        password = data.get("password") or ""
        if not name or not password:
            return _error(400, "Error de validación", "Nombre y contraseña son requeridos")

        account = accounts.get(name)
        if account is None or account["password"] != password:
            return _error(401, "No autorizado", "Credenciales incorrectas")
        return jsonify({
            "access_token": account["access_token"],
            "id_restaurante": account["id"],
            "message": "Login exitoso",
        })

    @app.route("/tables", methods=["GET"])
    def get_tables():
        account = restaurant_for_token()
        if account is None:
            return _error(401, "No autorizado", "Token inválido")
        if request.args.get("id_restaurante") != account["id"]:
            return _error(401, "No autorizado", "No tienes permiso para ver las mesas de este restaurante")
        return jsonify(restaurant_tables(account["id"]))

    @app.route("/tables", methods=["POST"])
    def create_table():
        account = restaurant_for_token()
        if account is None:
            return _error(401, "No autorizado", "Token inválido")

        data = request.get_json(silent=True)
        if not data:
            return _error(400, "Error de validación", "No JSON body")
        if data.get("id_restaurante") != account["id"]:
            return _error(401, "No autorizado", "No tienes permiso para crear mesas en este restaurante")

        limit = app.config["FAIL_CREATE_AFTER"]
        if limit is not None and limit <= 0:
            return _error(500, "Error interno", "Error guardando mesa")

        if not data.get("nombre"):
            return _error(400, "Error de validación", "El nombre de la mesa es requerido")
        if data.get("forma") not in SHAPES:
            return _error(400, "Error de validación", "La forma debe ser 'cuadrado' o 'circulo'")
        low, high = data.get("min_personas"), data.get("max_personas")
        if low is not None and high is not None and low > high:
            return _error(400, "Error de validación", "El mínimo de personas no puede ser mayor al máximo")
        if any(t["nombre"] == data["nombre"] for t in restaurant_tables(account["id"])):
            return _error(409, "Conflicto", f"Ya existe una mesa con el nombre '{data['nombre']}'")

        record = {
            "id": f"{next(ids):024x}",
            "id_restaurante": account["id"],
            "tipo": data.get("tipo", "mesa"),
            "nombre": data["nombre"],
            "pos_x": data["pos_x"],
            "pos_y": data["pos_y"],
            "size_x": data["size_x"],
            "size_y": data["size_y"],
            "forma": data["forma"],
            "reservable": bool(data.get("reservable", True)),
            "min_personas": low,
            "max_personas": high,
        }
        tables.append(record)
        if limit is not None:
            app.config["FAIL_CREATE_AFTER"] = limit - 1
        return jsonify({"message": "Mesa creada correctamente", "id": record["id"]})

    @app.route("/tables/clear", methods=["DELETE"])
    def clear_tables():
        account = restaurant_for_token()
        if account is None:
            return _error(401, "No autorizado", "Token inválido")
        if request.args.get("id_restaurante") != account["id"]:
            return _error(401, "No autorizado", "No tienes permiso para modificar este restaurante")

        mine = restaurant_tables(account["id"])
        for record in mine:
            tables.remove(record)
        return jsonify({"message": f"Se eliminaron {len(mine)} mesas correctamente"})

    @app.route("/reservations", methods=["GET"])
    def get_reservations():
        account = restaurant_for_token()
        if account is None:
            return _error(401, "No autorizado", "Token inválido")
        return jsonify([r for r in reservations if r["id_restaurante"] == account["id"]])

    return app
