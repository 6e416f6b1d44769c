import json

import requests

from conftest import DST, DST_API, SRC, SRC_API, make_item, make_response

import main


def _write_config(tmp_path):
    path = tmp_path / "migration_config.json"
    path.write_text(
        json.dumps(
            {
                "source": {"url": SRC, "username": "reader", "application_password": "src pass"},
                "destination": {"url": DST, "username": "writer", "application_password": "dst pass"},
                "migration": {"report_dir": str(tmp_path / "reports")},
            }
        ),
        encoding="utf-8",
    )
    return str(path)


def _serve_valid_sites(fake_wp):
    for base, api in ((SRC, SRC_API), (DST, DST_API)):
        fake_wp.add("GET", f"{base}/wp-json/", make_response(200, {}))
        fake_wp.add("GET", f"{api}/users/me", make_response(200, {"id": 1}))


def test_list_only_prints_source_items(fake_wp, tmp_path, capsys):
    _serve_valid_sites(fake_wp)
    fake_wp.add("GET", f"{SRC_API}/posts", make_response(200, [make_item(1, title="Caf&eacute;", status="draft")]))

    code = main.main(["--config", _write_config(tmp_path), "--list-only"])

    assert code == 0
    assert capsys.readouterr().out == "1\tdraft\tCafé\n"
    assert fake_wp.calls_to("POST", f"{DST_API}/posts") == []


def test_unreachable_destination_exits_with_1(fake_wp, tmp_path):
    _serve_valid_sites(fake_wp)
    fake_wp.add("GET", f"{DST}/wp-json/", requests.ConnectionError("refused"))

    assert main.main(["--config", _write_config(tmp_path)]) == 1


def test_failed_items_exit_with_2(fake_wp, tmp_path, capsys):
    _serve_valid_sites(fake_wp)
    fake_wp.add("GET", f"{SRC_API}/posts", make_response(200, [make_item(1)]))
    fake_wp.add("GET", f"{SRC_API}/posts/1", make_response(200, make_item(1)))
    fake_wp.add("POST", f"{DST_API}/posts", make_response(403, {"message": "Sorry, you are not allowed to create posts."}))

    code = main.main(["--config", _write_config(tmp_path), "--ids", "1"])

    assert code == 2
    assert "1: error - Post creation failed: Sorry, you are not allowed" in capsys.readouterr().out


def test_invalid_content_type_in_config_exits_with_1(fake_wp, tmp_path, capsys):
    path = tmp_path / "migration_config.json"
    path.write_text(json.dumps({"migration": {"content_type": "media"}}), encoding="utf-8")

    assert main.main(["--config", str(path)]) == 1
    assert "content_type" in capsys.readouterr().err
    assert fake_wp.calls == []


def test_malformed_config_file_exits_with_1(fake_wp, tmp_path):
    path = tmp_path / "migration_config.json"
    path.write_text("{not json", encoding="utf-8")

    assert main.main(["--config", str(path)]) == 1
    assert fake_wp.calls == []


def test_non_numeric_ids_exit_with_1(fake_wp, tmp_path, capsys):
    assert main.main(["--config", _write_config(tmp_path), "--ids", "1,abc"]) == 1
    assert "--ids" in capsys.readouterr().err
    assert fake_wp.calls == []
