"""ローカルファイルシステムベースのキャンペーンストア。"""

import json
from datetime import datetime
from pathlib import Path

from tradeguard.models.campaign import CampaignWithApproval
from tradeguard.models.errors import CampaignNotFoundError, ConcurrencyConflictError, StorageError


class CampaignStore:
    """承認ステータス付きキャンペーンの永続化層。

    書き込みは楽観的排他制御を行う。呼び出し側は読み込んだ時点の
    approval.last_modified を expected_last_modified として渡し、保存済みの値と
    一致しない場合は ConcurrencyConflictError で拒否する。
    キャンペーンの削除は提供しない。
    """

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = data_dir
        self._campaigns_dir = data_dir / "campaigns"

    def _campaign_file(self, campaign_id: str) -> Path:
        # ディレクトリトラバーサル防止
        safe_id = Path(campaign_id).name
        if not safe_id or safe_id in (".", "..") or safe_id != campaign_id:
            raise StorageError(f"Invalid campaign ID: {campaign_id}")
        return self._campaigns_dir / f"{safe_id}.json"

    async def save_campaign(
        self,
        record: CampaignWithApproval,
        expected_last_modified: datetime | None = None,
    ) -> None:
        """キャンペーンを保存する。

        Args:
            record: 保存するキャンペーン。
            expected_last_modified: 更新元レコードの last_modified。新規作成時は None。

        Raises:
            ConcurrencyConflictError: 保存済みレコードが更新元と異なる場合、
                または新規作成で同じIDのレコードが既に存在する場合。
        """
        campaign_file = self._campaign_file(record.id)
        stored = self._read(campaign_file) if campaign_file.exists() else None

        stored_modified = stored.approval.last_modified if stored is not None else None
        if stored_modified != expected_last_modified:
            raise ConcurrencyConflictError(
                record.id,
                expected_last_modified.isoformat() if expected_last_modified else None,
                stored_modified.isoformat() if stored_modified else None,
            )

        self._campaigns_dir.mkdir(parents=True, exist_ok=True)
        tmp_file = campaign_file.with_suffix(".json.tmp")
        tmp_file.write_text(record.model_dump_json(indent=2), encoding="utf-8")
        tmp_file.replace(campaign_file)

    async def load_campaign(self, campaign_id: str) -> CampaignWithApproval:
        """キャンペーンを読み込む。

        Raises:
            CampaignNotFoundError: キャンペーンが存在しない場合。
        """
        campaign_file = self._campaign_file(campaign_id)
        if not campaign_file.exists():
            raise CampaignNotFoundError(campaign_id)
        return self._read(campaign_file)

    async def list_campaigns(self) -> list[CampaignWithApproval]:
        """保存されている全キャンペーンを返す。"""
        if not self._campaigns_dir.exists():
            return []
        return [self._read(f) for f in sorted(self._campaigns_dir.glob("*.json"))]

    async def list_campaign_ids(self) -> list[str]:
        """保存されているキャンペーンIDを昇順で返す。"""
        if not self._campaigns_dir.exists():
            return []
        return [f.stem for f in sorted(self._campaigns_dir.glob("*.json"))]

    @staticmethod
    def _read(campaign_file: Path) -> CampaignWithApproval:
        try:
            data = json.loads(campaign_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"キャンペーンファイルを読み込めません: {campaign_file}: {e}") from e
        return CampaignWithApproval.model_validate(data)
