from amplifier.files import corrected_file_name, file_extension, group_by_folder, make_file


def test_file_extension():
    assert file_extension("main.py") == "py"
    assert file_extension("archive.tar.gz") == "gz"
    assert file_extension("Makefile") == "Makefile"
    assert file_extension("") == ""
    assert file_extension(".bashrc") == "bashrc"


def test_make_file_splits_name_from_path():
    f = make_file("project\\src\\app.ts", "let x = 1")
    assert f.path == "project/src/app.ts"
    assert f.name == "app.ts"
    assert f.extension == "ts"
    assert f.content == "let x = 1"


def test_group_by_folder():
    files = [
        make_file("a.py", ""),
        make_file("src/b.py", ""),
        make_file("src/lib/c.py", ""),
        make_file("src/d.py", ""),
    ]
    groups = group_by_folder(files)
    assert list(groups) == ["Root", "src", "src/lib"]
    assert [f.name for f in groups["src"]] == ["b.py", "d.py"]


def test_corrected_file_name():
    assert corrected_file_name("src/app.py") == "app_corrected.py"
    assert corrected_file_name("archive.tar.gz") == "archive.tar_corrected.gz"
    assert corrected_file_name("src.v2/Makefile") == "Makefile"
    assert corrected_file_name("") == "corrected_code.txt"


# --- API ---

def test_upload_endpoint(client):
    response = client.post(
        "/files/upload",
        files=[
            ("files", ("main.py", b"print('hi')\n", "text/x-python")),
            ("files", ("src/util.js", b"console.log(1)", "text/javascript")),
            ("files", ("blob.bin", b"\xff\xfeok", "application/octet-stream")),
        ],
    )
    assert response.status_code == 200
    body = response.json()

    assert body["files"][0] == {
        "name": "main.py",
        "path": "main.py",
        "content": "print('hi')\n",
        "extension": "py",
    }
    assert body["files"][1]["name"] == "util.js"
    assert body["files"][1]["extension"] == "js"
    assert body["files"][2]["content"].endswith("ok")
    assert {"main.py", "blob.bin"} <= set(body["folders"]["Root"])


def test_download_corrected(client):
    result = {
        "fileName": "app.py",
        "path": "src/app.py",
        "code": "x=1",
        "result": "Use spaces",
        "score": 60,
        "correctedCode": "x = 1\n",
        "hasCorrections": True,
    }
    response = client.post("/files/corrected", json=result)

    assert response.status_code == 200
    assert response.text == "x = 1\n"
    assert response.headers["content-disposition"] == 'attachment; filename="app_corrected.py"'


def test_download_corrected_without_corrections(client):
    result = {
        "fileName": "app.py",
        "path": "app.py",
        "code": "x = 1",
        "result": "Fine",
        "score": 95,
        "hasCorrections": False,
    }
    response = client.post("/files/corrected", json=result)
    assert response.status_code == 400
    assert response.json()["detail"] == "No corrected code available"


def test_download_corrected_non_ascii_name(client):
    for path, expected in [
        ("src/файл.py", "attachment; filename*=utf-8''%D1%84%D0%B0%D0%B9%D0%BB_corrected.py"),
        ("café.py", "attachment; filename*=utf-8''caf%C3%A9_corrected.py"),
        ('say "hi".py', "attachment; filename*=utf-8''say%20%22hi%22_corrected.py"),
    ]:
        result = {
            "fileName": path.rsplit("/", 1)[-1],
            "path": path,
            "code": "x=1",
            "result": "Use spaces",
            "score": 60,
            "correctedCode": "x = 1\n",
            "hasCorrections": True,
        }
        response = client.post("/files/corrected", json=result)

        assert response.status_code == 200
        assert response.headers["content-disposition"] == expected
        assert response.text == "x = 1\n"
