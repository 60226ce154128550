import csv
import json

from services.filas_erroneas import RegistroFilasErroneas


def test_desactivado_no_escribe(tmp_path):
    ruta = tmp_path / "bad.csv"
    registro = RegistroFilasErroneas(ruta=str(ruta), activo=False)

    assert registro.registrar(1, "users", "user_not_found", {"dni": "1"}) is False
    assert not ruta.exists()


def test_cabecera_una_sola_vez_y_texto_sin_escapar(tmp_path):
    ruta = tmp_path / "bad.csv"
    registro = RegistroFilasErroneas(ruta=str(ruta), activo=True)

    assert registro.registrar(1, "companies", "company_not_found", {"center_name": "Logroño"})
    assert registro.registrar(7, "companies", "center_not_found", {"center_name": "Sur"})

    with open(ruta, encoding="utf-8", newline="") as f:
        filas = list(csv.reader(f))
    assert filas[0] == ["row", "phase", "reason", "raw_json"]
    assert len(filas) == 3
    assert filas[1][:3] == ["1", "companies", "company_not_found"]
    assert "Logroño" in filas[1][3]
    assert json.loads(filas[2][3]) == {"center_name": "Sur"}


def test_fallo_de_escritura_no_se_propaga(tmp_path):
    # Un directorio no se puede abrir como fichero
    registro = RegistroFilasErroneas(ruta=str(tmp_path), activo=True)
    assert registro.registrar(1, "users", "boom", {}) is False
