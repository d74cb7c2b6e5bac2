"""Utilidades compartidas por los tests."""

import requests


def make_response(body="", status_code=200, url="http://restapi.amap.com/v3/test"):
    """Construye un requests.Response real con el cuerpo indicado."""
    response = requests.Response()
    response.status_code = status_code
    response._content = body.encode("utf-8") if isinstance(body, str) else body
    response.encoding = "utf-8"
    response.url = url
    response.reason = "OK" if status_code < 400 else "Error"
    return response


def sent_params(session):
    """Parámetros de la última petición GET enviada por una sesión simulada."""
    return session.get.call_args.kwargs["params"]
