"""HTTP client for the restaurant layout backend."""
import logging

import httpx

from plano import config

logger = logging.getLogger(__name__)


class LayoutApiError(Exception):
    """Base class for everything the backend client raises."""


class ApiResponseError(LayoutApiError):
    """The backend answered with a non-success status."""

    def __init__(self, status_code, message):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


class ApiConnectionError(LayoutApiError):
    """The request never got an answer (DNS, refused connection, timeout...)."""


class Session:
    """Credential and restaurant a logged-in user works on."""

    def __init__(self, access_token, restaurant_id):
        self.access_token = access_token
        self.restaurant_id = restaurant_id

    @property
    def headers(self):
        return {"Authorization": f"Bearer {self.access_token}"}

    def __repr__(self):
        return f"<Session restaurant={self.restaurant_id}>"


def error_message(response) -> str:
    """Pick the human readable message out of an error response."""
    try:
        data = response.json()
    except ValueError:
        return "Error desconocido"
    if not isinstance(data, dict):
        return "Error en la operación"
    return data.get("message") or data.get("error") or "Error en la operación"


class LayoutClient:
    def __init__(self, base_url=config.API_URL, timeout=config.API_TIMEOUT, http=None):
        self._http = http or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self):
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _request(self, method, url, session=None, **kwargs):
        headers = kwargs.pop("headers", {})
        if session is not None:
            headers.update(session.headers)
        try:
            response = self._http.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("%s %s failed: %s", method, url, exc)
            raise ApiConnectionError(str(exc)) from exc

        if not response.is_success:
            message = error_message(response)
            logger.warning("%s %s -> %s %s", method, url, response.status_code, message)
            raise ApiResponseError(response.status_code, message)
        return response

    def _json(self, response):
        try:
            return response.json()
        except ValueError as exc:
            raise ApiResponseError(response.status_code, "Respuesta inválida del servidor") from exc

    # -------------------------
    # Restaurants
    # -------------------------
    def login(self, name, password):
        """Return ``(Session, message)`` for valid credentials."""
        response = self._request("POST", "/restaurants/login", json={"name": name, "password": password})
        data = self._json(response)
        try:
            session = Session(data["access_token"], data["id_restaurante"])
        except (KeyError, TypeError) as exc:
            raise ApiResponseError(response.status_code, "Respuesta de login incompleta") from exc
        return session, data.get("message")

    # -------------------------
    # Tables
    # -------------------------
    def get_tables(self, session) -> list:
        response = self._request(
            "GET", "/tables", session, params={"id_restaurante": session.restaurant_id}
        )
        data = self._json(response)
        if not isinstance(data, list):
            raise ApiResponseError(response.status_code, "Respuesta inválida del servidor")
        return data

    def create_table(self, session, record) -> dict:
        response = self._request("POST", "/tables", session, json=record)
        return self._json(response)

    def clear_tables(self, session) -> dict:
        response = self._request(
            "DELETE", "/tables/clear", session, params={"id_restaurante": session.restaurant_id}
        )
        return self._json(response)

    # -------------------------
    # Reservations
    # -------------------------
    def get_reservations(self, session, fecha=None, estado=None) -> list:
        params = {}
        if fecha:
            params["fecha"] = fecha
        if estado:
            params["estado"] = estado
        response = self._request("GET", "/reservations", session, params=params)
        data = self._json(response)
        return data if isinstance(data, list) else []
