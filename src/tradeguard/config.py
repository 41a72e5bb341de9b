"""TradeGuardサーバーの設定管理。"""

from pathlib import Path

from pydantic_settings import BaseSettings

_PACKAGE_ROOT = Path(__file__).parent
_REPO_ROOT = _PACKAGE_ROOT.parent.parent


class ServerConfig(BaseSettings):
    """サーバー設定。環境変数から読み込み可能。"""

    model_config = {"env_prefix": "TRADEGUARD_"}

    data_dir: Path = _REPO_ROOT / ".tradeguard"
    config_dir: Path = _REPO_ROOT / "config"
    host: str = "0.0.0.0"
    port: int = 8000
    url_token: str = ""
    log_level: str = "INFO"

    # スキャナー内部障害時にコンテンツを承認扱いにする（可用性優先）。
    # 規制上 fail-closed が必要な場合は false にする。
    fail_open_on_scan_error: bool = True

    # 承認者IDが明示されない場合に使う操作ユーザーID
    default_user_id: str = "system"
