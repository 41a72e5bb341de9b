"""ルールカタログ（YAML）の読み込みと検証。

カタログはプロセス起動時に一度だけ読み込み、以降は読み取り専用で共有する。
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from tradeguard.models.certification import ServiceRequirement
from tradeguard.models.content import ContentCatalogue
from tradeguard.models.errors import CatalogueError
from tradeguard.models.rules import ComplianceRule

CONTENT_FILTERS_FILE = "content-filters.yaml"
SERVICE_REQUIREMENTS_FILE = "service-requirements.yaml"
COMPLIANCE_RULES_FILE = "compliance-rules.yaml"


class Catalogues(BaseModel):
    """3種類のカタログをまとめたもの。"""

    model_config = ConfigDict(frozen=True)

    content: ContentCatalogue
    service_requirements: tuple[ServiceRequirement, ...]
    compliance_rules: tuple[ComplianceRule, ...]


def _read_yaml(path: Path, root_key: str) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise CatalogueError(f"カタログファイルが見つかりません: {path}") from None
    except yaml.YAMLError as e:
        raise CatalogueError(f"カタログファイルを解析できません: {path}: {e}") from e
    if not isinstance(data, dict) or root_key not in data:
        raise CatalogueError(f"カタログファイルに '{root_key}' がありません: {path}")
    return data


def load_content_catalogue(config_dir: Path) -> ContentCatalogue:
    """禁止表現・注意表現カタログを読み込む。

    フレーズは小文字に正規化する。置換文字列が別の置換対象フレーズを含む場合は
    置換処理が冪等にならないため CatalogueError とする。

    Raises:
        CatalogueError: ファイルが存在しない、または定義が不正な場合。
    """
    path = config_dir / CONTENT_FILTERS_FILE
    data = _read_yaml(path, "banned")

    for category in data["banned"]:
        category["phrases"] = [str(p).lower() for p in category.get("phrases", [])]
        category["replacements"] = {
            str(k).lower(): str(v) for k, v in (category.get("replacements") or {}).items()
        }

    try:
        catalogue = ContentCatalogue.model_validate(data)
    except ValidationError as e:
        raise CatalogueError(f"禁止表現カタログの定義が不正です: {path}: {e}") from e

    replaceable = [key for category in catalogue.banned for key in category.replacements]
    for category in catalogue.banned:
        for phrase, replacement in category.replacements.items():
            if phrase not in category.phrases:
                raise CatalogueError(f"{category.name}: 置換定義 '{phrase}' に対応する禁止表現がありません")
            lowered = replacement.lower()
            clashes = [key for key in replaceable if key in lowered]
            if clashes:
                raise CatalogueError(
                    f"{category.name}: '{phrase}' の置換文字列に置換対象フレーズが含まれています: {clashes}"
                )

    return catalogue


def load_service_requirements(config_dir: Path) -> tuple[ServiceRequirement, ...]:
    """サービス要件カタログを読み込む。

    Raises:
        CatalogueError: ファイルが存在しない、定義が不正、またはサービスIDが重複する場合。
    """
    path = config_dir / SERVICE_REQUIREMENTS_FILE
    data = _read_yaml(path, "requirements")
    try:
        requirements = tuple(ServiceRequirement.model_validate(r) for r in data["requirements"])
    except ValidationError as e:
        raise CatalogueError(f"サービス要件カタログの定義が不正です: {path}: {e}") from e

    seen: set[str] = set()
    for requirement in requirements:
        if requirement.service in seen:
            raise CatalogueError(f"サービスIDが重複しています: {requirement.service}")
        seen.add(requirement.service)
    return requirements


def load_compliance_rules(config_dir: Path) -> tuple[ComplianceRule, ...]:
    """規制ルールカタログを読み込む。

    Raises:
        CatalogueError: ファイルが存在しない、または定義が不正な場合。
    """
    path = config_dir / COMPLIANCE_RULES_FILE
    data = _read_yaml(path, "rules")
    try:
        return tuple(ComplianceRule.model_validate(r) for r in data["rules"])
    except ValidationError as e:
        raise CatalogueError(f"規制ルールカタログの定義が不正です: {path}: {e}") from e


def load_catalogues(config_dir: Path) -> Catalogues:
    """config_dir 配下の全カタログを読み込む。"""
    return Catalogues(
        content=load_content_catalogue(config_dir),
        service_requirements=load_service_requirements(config_dir),
        compliance_rules=load_compliance_rules(config_dir),
    )
