import pathlib

import fastapi.testclient
import pytest

import bixolon_label_layout as bll
import bixolon_label_layout.compiler
import bixolon_label_layout.config
import bixolon_label_layout.dispatcher
import bixolon_label_layout.fonts
import bixolon_label_layout.hyphenation
import bixolon_label_layout.server
import bixolon_label_layout.storage


LAYOUT = {
	"widthMM": 58,
	"heightMM": 40,
	"objects": [{"type": "textbox", "text": "Мёд {{sort}}", "width": 150, "fontSize": 10}],
}


#============================================
class NoBreakHyphenator(bll.hyphenation.Hyphenator):
	"""
	Hyphenator that never finds a break point.
	"""

	def raw_parts(self, word: str) -> list[str]:
		return [word]


#============================================
class FakeResponse:
	def __init__(self, status_code: int, payload):
		self.status_code = status_code
		self.payload = payload
		self.text = str(payload)

	def json(self):
		return self.payload


#============================================
class FakeSession:
	"""
	Printer stand-in: reports online and accepts or rejects jobs.
	"""

	def __init__(self, post_status: int = 200):
		self.post_status = post_status
		self.posts = []

	def get(self, url, timeout=None):
		return FakeResponse(200, {"Result": True})

	def post(self, url, json=None, timeout=None):
		self.posts.append(json)
		return FakeResponse(self.post_status, {"Result": self.post_status == 200})


#============================================
def _client(tmp_path: pathlib.Path, session: FakeSession) -> fastapi.testclient.TestClient:
	"""
	Build an app with temp storage, fallback fonts and a fake printer.
	"""
	printer_config = bll.config.PrinterConfig()
	server_config = bll.config.ServerConfig(
		layouts_dir=str(tmp_path / "layouts"),
		fonts_dir=str(tmp_path / "fonts"),
	)
	hyphenator = NoBreakHyphenator()
	registry = bll.fonts.FontRegistry(server_config.fonts_dir)
	compiler = bll.compiler.LabelCompiler(printer_config, registry=registry, hyphenator=hyphenator)
	dispatcher = bll.dispatcher.PrintDispatcher(
		printer_config,
		session=session,
		sequence=bll.dispatcher.JobIdSequence(500),
		compiler=compiler,
	)
	app = bll.server.create_app(
		server_config,
		printer_config,
		store=bll.storage.LayoutStore(server_config.layouts_dir),
		dispatcher=dispatcher,
		registry=registry,
		hyphenator=hyphenator,
	)
	return fastapi.testclient.TestClient(app)


#============================================
@pytest.fixture
def session() -> FakeSession:
	return FakeSession()


#============================================
@pytest.fixture
def client(tmp_path: pathlib.Path, session: FakeSession) -> fastapi.testclient.TestClient:
	return _client(tmp_path, session)


#============================================
def test_layout_crud(client: fastapi.testclient.TestClient) -> None:
	"""
	Save, list, load and delete a layout over HTTP.
	"""
	response = client.post("/api/layouts/save", json={"name": "honey", "layoutData": LAYOUT})
	assert response.status_code == 200
	assert response.json()["filename"] == "honey.json"
	listing = client.get("/api/layouts").json()
	assert [entry["filename"] for entry in listing] == ["honey.json"]
	assert client.get("/api/layouts/honey.json").json() == LAYOUT
	assert client.delete("/api/layouts/honey.json").status_code == 200
	missing = client.get("/api/layouts/honey.json")
	assert missing.status_code == 404
	assert "error" in missing.json()


#============================================
def test_save_rejects_bad_names(client: fastapi.testclient.TestClient, tmp_path: pathlib.Path) -> None:
	"""
	Traversal names and missing fields are client errors.
	"""
	response = client.post("/api/layouts/save", json={"name": "../evil", "layoutData": LAYOUT})
	assert response.status_code == 400
	assert "invalid layout filename" in response.json()["error"]
	assert not (tmp_path / "evil.json").exists()
	response = client.post("/api/layouts/save", json={"layoutData": LAYOUT})
	assert response.status_code == 400
	assert "name" in response.json()["error"]


#============================================
def test_print_saved_template(client: fastapi.testclient.TestClient, session: FakeSession) -> None:
	"""
	Printing a template fills placeholders and posts the job.
	"""
	client.post("/api/layouts/save", json={"name": "honey", "layoutData": LAYOUT})
	response = client.post("/api/print", json={"template": "honey", "data": {"sort": "Липовый"}})
	assert response.status_code == 200
	result = response.json()["result"]
	assert result["success"] is True
	assert result["requestId"] == 500
	texts = [item["params"].get("text") for item in session.posts[0]["functions"]]
	assert "Мёд Липовый" in texts


#============================================
def test_print_inline_layout_with_settings(client: fastapi.testclient.TestClient, session: FakeSession) -> None:
	"""
	Inline layouts print with the requested settings.
	"""
	body = {"layoutData": LAYOUT, "printSettings": {"speed": 2, "density": 15}}
	assert client.post("/api/print", json=body).status_code == 200
	functions = session.posts[0]["functions"]
	speed = [item for item in functions if item["name"] == "setSpeed"][0]
	assert speed["params"] == {"speed": 2}


#============================================
def test_print_errors(client: fastapi.testclient.TestClient) -> None:
	"""
	Missing input is a 400 and a missing template a 404.
	"""
	assert client.post("/api/print", json={}).status_code == 400
	assert client.post("/api/print", json={"template": "nope"}).status_code == 404
	bad = client.post("/api/print", json={"layoutData": {"objects": []}})
	assert bad.status_code == 400
	assert "widthMM" in bad.json()["error"]


#============================================
def test_print_failure_is_bad_gateway(tmp_path: pathlib.Path) -> None:
	"""
	A printer error surfaces as 502 with the failed result.
	"""
	client = _client(tmp_path, FakeSession(post_status=500))
	response = client.post("/api/print", json={"layoutData": LAYOUT})
	assert response.status_code == 502
	data = response.json()
	assert "500" in data["error"]
	assert data["result"]["success"] is False
	assert data["result"]["statusCode"] == 500


#============================================
def test_printer_endpoints(client: fastapi.testclient.TestClient) -> None:
	"""
	Printer info and connection status are exposed.
	"""
	info = client.get("/api/printer-info").json()
	assert info["printerName"] == "Printer1"
	assert client.get("/api/printer-connection").json() == {"connected": True}


#============================================
def test_barcode_endpoint(client: fastapi.testclient.TestClient) -> None:
	"""
	Valid barcodes come back as SVG, bad check digits as 400.
	"""
	response = client.get("/api/barcode", params={"bcid": "ean13", "text": "12345678901", "includetext": "true"})
	assert response.status_code == 200
	assert response.headers["content-type"].startswith("image/svg+xml")
	assert "<svg" in response.text
	mismatch = client.get("/api/barcode", params={"bcid": "ean13", "text": "4006381333932"})
	assert mismatch.status_code == 400
	assert "check digit" in mismatch.json()["error"]
	assert client.get("/api/barcode", params={"bcid": "ean13"}).status_code == 400


#============================================
def test_text_layout_endpoint(client: fastapi.testclient.TestClient) -> None:
	"""
	Text layout answers with lines and metrics in the editor's field names.
	"""
	body = {"text": "aa", "fontSize": 10, "blockWidth": 100, "isCentered": True, "useHyphenation": False}
	response = client.post("/api/text-layout", json=body)
	assert response.status_code == 200
	data = response.json()
	assert data["lines"] == [" " * 18 + "aa"]
	assert data["lineHeight"] == pytest.approx(12.0)
	assert data["useHyphenation"] is False
	assert data["fontMetrics"] is None
	bad = client.post("/api/text-layout", json={"text": "aa", "fontSize": 0, "blockWidth": 100})
	assert bad.status_code == 400
