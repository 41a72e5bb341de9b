"""TradeGuardのカスタム例外クラス。

違反・不合格チェック等のドメイン上の判定結果はデータとして返し、例外にはしない。
ここで定義するのは呼び出し元へ伝播させるべき障害のみ。
"""


class TradeGuardError(Exception):
    """TradeGuardの基底例外クラス。"""


class CatalogueError(TradeGuardError):
    """ルールカタログの読み込み・検証エラー。"""


class UnknownCertificationKindError(TradeGuardError):
    """未知の資格種別が指定された場合の例外。"""

    def __init__(self, kind: str) -> None:
        super().__init__(f"Unknown certification kind: {kind}")
        self.kind = kind


class IllegalTransitionError(TradeGuardError):
    """現在の承認ステータスから実行できない操作が要求された場合の例外。"""

    def __init__(self, campaign_id: str, status: str, action: str) -> None:
        super().__init__(f"Cannot {action} campaign {campaign_id} in status '{status}'")
        self.campaign_id = campaign_id
        self.status = status
        self.action = action


class CampaignNotFoundError(TradeGuardError):
    """キャンペーンが見つからない場合の例外。"""

    def __init__(self, campaign_id: str) -> None:
        super().__init__(f"Campaign not found: {campaign_id}")
        self.campaign_id = campaign_id


class CampaignNotApprovableError(TradeGuardError):
    """承認前バリデーションでエラーが検出された場合の例外。"""

    def __init__(self, campaign_id: str, errors: list[str]) -> None:
        super().__init__(f"Campaign {campaign_id} cannot be approved: {'; '.join(errors)}")
        self.campaign_id = campaign_id
        self.errors = errors


class ConcurrencyConflictError(TradeGuardError):
    """楽観的排他制御で古いレコードの書き込みを拒否した場合の例外。"""

    def __init__(self, campaign_id: str, expected: str | None, actual: str | None) -> None:
        super().__init__(
            f"Stale write rejected for campaign {campaign_id}: "
            f"expected last_modified={expected}, stored last_modified={actual}"
        )
        self.campaign_id = campaign_id
        self.expected = expected
        self.actual = actual


class StorageError(TradeGuardError):
    """ストレージ操作のエラー。"""


class ScanFaultError(TradeGuardError):
    """コンテンツスキャン中の内部障害（fail-closed設定時のみ送出）。"""


class InvalidInputError(TradeGuardError):
    """入力の形式が不正な場合の例外。スキャナーの内部障害とは区別して常に送出する。"""
