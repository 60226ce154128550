import pytest
from fastapi.testclient import TestClient

from controllers.controlador_importacion import RUTA_SUBIDA, crear_app


@pytest.fixture
def cliente(servicio):
    return TestClient(crear_app(servicio))


def _fichero(contenido=b"DNI;NOMBRE\n11111111H;Ana"):
    return {"file": ("export.csv", contenido, "text/csv")}


def test_sin_fichero_es_400(cliente):
    respuesta = cliente.post(RUTA_SUBIDA, data={"phase": "users"})
    assert respuesta.status_code == 400
    assert respuesta.json()["detail"] == "File is required"


@pytest.mark.parametrize("datos", [{"phase": "enrollments"}, {}])
def test_fase_invalida_o_ausente_es_400(cliente, datos):
    respuesta = cliente.post(RUTA_SUBIDA, files=_fichero(), data=datos)
    assert respuesta.status_code == 400
    assert "Invalid phase" in respuesta.json()["detail"]


def test_fichero_vacio_es_400(cliente):
    respuesta = cliente.post(RUTA_SUBIDA, files=_fichero(b""), data={"phase": "users"})
    assert respuesta.status_code == 400


def test_importa_y_devuelve_el_desenlace_por_fila(cliente):
    respuesta = cliente.post(RUTA_SUBIDA, files=_fichero(), data={"phase": "users"})

    assert respuesta.status_code == 200
    cuerpo = respuesta.json()
    assert cuerpo["success"] is True
    assert cuerpo["errors"] == []
    assert cuerpo["results"][0]["status"] == "ok"
    assert cuerpo["results"][0]["matched_by"] == "created"
