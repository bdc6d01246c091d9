from os.path import dirname
from unittest.mock import patch

import config

from relaybox.relayboxd import build_app, run

cfg = config.Config(f"{dirname(__file__)}/fixtures/config.cfg")


class TestRelayboxd:
    def test_it_wires_the_policy_into_the_pipeline(self):
        app = build_app(cfg)

        pipeline = app.state.pipeline
        assert pipeline.policy.return_path == "bounces@example.com"
        assert pipeline.transport.host == "smtp.example.com"
        assert app.state.store is pipeline.store

    def test_it_exposes_the_message_routes(self):
        paths = build_app(cfg).openapi()["paths"]

        assert "/api/v1/message/{message_id}/release" in paths
        assert "/api/v1/message/{message_id}/headers" in paths
        assert "/api/v1/message/{message_id}/raw" in paths
        assert "post" in paths["/api/v1/message/{message_id}/release"]

    @patch("relaybox.relayboxd.uvicorn")
    def test_it_serves_on_the_requested_port(self, mock_uvicorn):
        config_file = f"{dirname(__file__)}/fixtures/config.cfg"

        with patch("sys.argv", ["relayboxd", "-c", config_file, "-p", "9000"]):
            run()

        (_app,) = mock_uvicorn.run.call_args.args
        assert mock_uvicorn.run.call_args.kwargs == {"host": "127.0.0.1", "port": 9000}
