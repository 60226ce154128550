import json

import main


def test_importacion_por_linea_de_comandos(tmp_path, servicio, monkeypatch, capsys):
    fichero = tmp_path / "export.csv"
    fichero.write_bytes("DNI;NOMBRE\n11111111H;Ana\n;\n".encode("latin-1"))
    monkeypatch.setattr(main, "inicializar_base_de_datos", lambda: None)
    monkeypatch.setattr(main, "ImportacionService", lambda: servicio)

    codigo = main.main(["--csv", str(fichero), "--fase", "users", "--limite", "1"])

    salida = json.loads(capsys.readouterr().out)
    assert codigo == 0
    assert salida["success"] is True
    assert len(salida["results"]) == 1
    assert salida["results"][0]["matched_by"] == "created"
