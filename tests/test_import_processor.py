from controllers.import_processor import CsvEngine, canonizar_encabezado


def test_detecta_punto_y_coma_solo_si_no_hay_comas():
    assert CsvEngine(b"DNI;NOMBRE\n1;Ana").separador == ";"
    assert CsvEngine(b"DNI,NOMBRE\n1,Ana").separador == ","
    assert CsvEngine(b"DNI;NOMBRE,X\n1;Ana,2").separador == ","


def test_encabezados_con_alias_y_mayusculas():
    assert canonizar_encabezado("moodleIdUser") == "moodle_id_user"
    assert canonizar_encabezado("MOODLE_ID_USER") == "moodle_id_user"
    assert canonizar_encabezado("Nombre") == "name"
    assert canonizar_encabezado("Número Patronal") == "employer_number"
    assert canonizar_encabezado("Columna rara") == "Columna rara"


def test_filas_canonicas_en_latin1():
    contenido = "DNI;Nombre;CIF_EMPRESA;CENTRO;Otra\n12345678Z; María ;B123;Logroño;x".encode("latin-1")
    filas = list(CsvEngine(contenido))
    assert filas == [{
        "dni": "12345678Z",
        "name": "María",
        "cif": "B123",
        "center_name": "Logroño",
        "Otra": "x",
    }]


def test_bom_utf8_no_rompe_el_primer_encabezado():
    contenido = "\ufeffDNI,NOMBRE\n1,Ana".encode("utf-8")
    filas = list(CsvEngine(contenido))
    assert filas[0]["dni"] == "1"


def test_primer_encabezado_gana_el_campo_canonico():
    filas = list(CsvEngine(b"DNI;NIF\n1;2"))
    assert filas == [{"dni": "1", "NIF": "2"}]


def test_celdas_vacias_son_cadenas_vacias():
    filas = list(CsvEngine(b"DNI;NSS\n;\n"))
    assert filas == [{"dni": "", "nss": ""}]


def test_se_puede_recorrer_varias_veces():
    motor = CsvEngine(b"DNI;NOMBRE\n1;Ana\n2;Luis")
    assert list(motor) == list(motor)
    assert len(list(motor)) == 2


def test_error_de_parseo_corta_la_lectura_sin_fallar():
    contenido = b"A,B\n1,2\n3,4\n5,6,7,8\n9,10"
    filas = list(CsvEngine(contenido, chunk_size=1))
    assert filas == [{"A": "1", "B": "2"}, {"A": "3", "B": "4"}]


def test_contenido_vacio_o_solo_cabecera():
    assert list(CsvEngine(b"")) == []
    assert list(CsvEngine(b"DNI;NOMBRE\n")) == []


def test_error_de_parseo_conserva_las_filas_previas_del_bloque():
    buenas = [f"{i},{i * 10}" for i in range(1, 11)]
    contenido = "\n".join(["A,B", *buenas, "x,y,z,w", "11,110"]).encode("latin-1")

    filas = list(CsvEngine(contenido))

    assert len(filas) == 10
    assert filas[0] == {"A": "1", "B": "10"}
    assert filas[-1] == {"A": "10", "B": "100"}


def test_error_de_parseo_a_mitad_de_un_bloque_posterior():
    buenas = [f"{i},{i * 10}" for i in range(1, 11)]
    contenido = "\n".join(["A,B", *buenas, "x,y,z,w"]).encode("latin-1")

    filas = list(CsvEngine(contenido, chunk_size=4))

    assert [f["A"] for f in filas] == [str(i) for i in range(1, 11)]
