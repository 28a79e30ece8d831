#!/usr/bin/env python3
"""Trigger analysis for legacy form modules.

Reads the PL/SQL attached to form-level and block-level triggers and
recovers what the functional specification needs to say about it:

  SQL statements   cursors, SELECT ... INTO, function-call assignments and
                   standalone ``p_``/``sf_`` procedure calls
  business rules   validation, auto-populate, calculation, navigation,
                   master/detail, delete check, or custom logic
  event info       what the event means and where the logic lands on the
                   target platform

Triggers are numbered in document order, form level first, then block by
block. Item triggers are reported under their block.

Usage:
    from formgen.legacy.trigger_analysis import analyze_triggers
    section = analyze_triggers(parse_fmb(text))
    for trigger in section.all_triggers():
        print(trigger.no, trigger.name, trigger.summary)
"""

import html
import logging
import re
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Dict, List, Tuple

from formgen.model.fmb import FmbModule, FmbTrigger

logger = logging.getLogger("formgen.legacy.trigger_analysis")


class SqlStatementType(str, Enum):
    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    CURSOR = "CURSOR"
    FUNCTION_CALL = "FUNCTION_CALL"


class BusinessRuleType(str, Enum):
    VALIDATION = "VALIDATION"
    AUTO_POPULATE = "AUTO_POPULATE"
    CALCULATION = "CALCULATION"
    NAVIGATION = "NAVIGATION"
    MASTER_DETAIL = "MASTER_DETAIL"
    DELETE_CHECK = "DELETE_CHECK"
    CUSTOM = "CUSTOM"


FORM_LEVEL = "Form"
BLOCK_LEVEL = "Block"


# ---------------------------------------------------------------------------
# Event catalogue: name -> (description, server-side use, target location)
# ---------------------------------------------------------------------------

TRIGGER_EVENTS: Dict[str, Tuple[str, str, str]] = {
    "WHEN-NEW-FORM-INSTANCE": (
        "當一個新的表單實例被創建時", "表單初始化時，進行資料預設值設定等",
        "AppBean.initialize() 或 DataBean.initialize() - 應用程式/區塊初始化"),
    "WHEN-NEW-ITEM-INSTANCE": (
        "當項目獲得焦點時觸發", "設定焦點後的事件處理，如資料驗證",
        "AppBean 自訂方法 - 前端事件處理（通常不需轉換）"),
    "WHEN-BUTTON-PRESSED": (
        "當按鈕被按下時觸發", "處理按鈕點擊事件，進行資料提交或其他操作",
        "AppBean.EVENTNAME() - 按鈕事件方法，方法名對應 sigevent"),
    "WHEN-VALIDATE-ITEM": (
        "當項目驗證完成後觸發", "用於表單提交前的資料檢查或處理",
        "Mbo.validateField(String attrName) 或 FldClass.validate() - 單一欄位驗證"),
    "WHEN-NEW-RECORD-INSTANCE": (
        "當表單進入新記錄時觸發", "用於記錄新增操作時的數據初始化",
        "Mbo.add() 或 Mbo.init() - 新增記錄初始化"),
    "PRE-QUERY": (
        "查詢之前觸發", "在發送查詢請求前，進行資料過濾或準備",
        "MboSet.setWhere() 或 AppBean 覆寫查詢方法"),
    "POST-QUERY": (
        "查詢之後觸發", "查詢完成後進行資料後處理",
        "MboSet.fetchMbos() 或 Mbo.init() - 查詢後處理"),
    "PRE-INSERT": (
        "插入之前觸發", "在插入資料之前進行前置操作",
        "Mbo.add() - 新增前初始化欄位預設值"),
    "POST-INSERT": (
        "插入之後觸發", "資料插入後進行後置操作",
        "Mbo.save() 內或 MboSet.save() 後 - 新增後處理"),
    "PRE-UPDATE": (
        "更新之前觸發", "更新資料之前進行檢查或準備",
        "Mbo.modify() - 更新前檢查"),
    "POST-UPDATE": (
        "更新之後觸發", "資料更新後進行後置處理",
        "Mbo.save() 內 - 更新後處理"),
    "PRE-DELETE": (
        "刪除之前觸發", "在刪除資料之前進行檢查或處理",
        "Mbo.delete() 或 Mbo.canDelete() - 刪除前檢查"),
    "POST-DELETE": (
        "刪除之後觸發", "資料刪除後進行後置操作",
        "Mbo.delete() 內或 MboSet.save() 後 - 刪除後處理"),
    "WHEN-TIMER-EXPIRED": (
        "計時器到期時觸發", "計時事件完成後觸發相應處理",
        "Crontask 或 Escalation - 排程/定時任務"),
    "WHEN-VALIDATE-RECORD": (
        "當整個記錄被驗證時觸發", "在記錄提交前進行最後的驗證",
        "Mbo.appValidate() - 存檔前整筆記錄驗證"),
    "PRE-FORM": (
        "表單創建前觸發", "初始化資料，配置表單屬性",
        "AppBean.initialize() - 應用程式初始化前"),
    "POST-FORM": (
        "表單創建後觸發", "完成資料加載後的後處理",
        "AppBean.initialize() 結束後 - 表單載入完成"),
    "WHEN-LOV-IS-OPEN": (
        "當 LOV 打開時觸發", "處理 LOV 彈出視窗的邏輯",
        "FldClass 或 lookupfilter - Domain/Lookup 過濾"),
    "WHEN-LOV-IS-CLOSED": (
        "當 LOV 關閉時觸發", "處理 LOV 關閉後的後續操作",
        "Mbo.action() 或 FldClass.action() - LOV 選擇後觸發"),
    "WHEN-NEW-BLOCK-INSTANCE": (
        "當新的區塊實例被創建時觸發", "初始化區塊中的資料",
        "DataBean.initialize() - 子區塊/Table 初始化"),
    "WHEN-MOUSE-CLICKED": (
        "當鼠標點擊時觸發", "處理用戶點擊事件",
        "前端 JavaScript 或 AppBean 方法 - 通常不需轉換"),
    "WHEN-MOUSE-DOUBLE-CLICKED": (
        "當鼠標雙擊時觸發", "處理用戶的雙擊事件",
        "前端 JavaScript 或 AppBean 方法 - 通常不需轉換"),
    "WHEN-KEY-PRESSED": (
        "當按鍵被按下時觸發", "處理按鍵事件",
        "前端 JavaScript - 通常不需轉換"),
    "WHEN-KEY-RELEASED": (
        "當按鍵被釋放時觸發", "針對按鍵釋放後執行的處理",
        "前端 JavaScript - 通常不需轉換"),
    "PRE-COMMIT": (
        "在提交資料之前觸發", "在提交資料前進行最後的資料驗證",
        "Mbo.appValidate() - 存檔前最終驗證"),
    "POST-COMMIT": (
        "資料提交之後觸發", "提交資料後進行後續操作",
        "Mbo.save() 結束後或 EventAction - 存檔後處理"),
    "WHEN-NEW-NAVIGATION-INSTANCE": (
        "當新的導航實例被創建時觸發", "用於更新導航視圖或重新整理",
        "AppBean 導航方法 - 頁籤切換處理"),
    "WHEN-MOUSE-ENTERED": (
        "當鼠標進入區域時觸發", "處理鼠標進入區域的操作",
        "前端 CSS/JavaScript - 不需轉換"),
    "WHEN-MOUSE-EXITED": (
        "當鼠標離開區域時觸發", "處理鼠標離開區域的操作",
        "前端 CSS/JavaScript - 不需轉換"),
    "ON-ERROR": (
        "當錯誤發生時觸發", "統一錯誤處理",
        "MXException 或 MboSetInfo - 錯誤訊息設定"),
    "ON-MESSAGE": (
        "當訊息產生時觸發", "自訂訊息處理",
        "MXException 或 messages.xml - 訊息定義"),
    "KEY-COMMIT": (
        "當提交鍵被按下時觸發", "處理提交動作",
        "Toolbar SAVE 按鈕 - 預設行為不需轉換"),
    "KEY-EXIT": (
        "當退出鍵被按下時觸發", "處理退出動作",
        "前端導航 - 不需轉換"),
    "KEY-DELREC": (
        "當刪除記錄鍵被按下時觸發", "處理刪除記錄動作",
        "Mbo.delete() + Mbo.canDelete()"),
    "KEY-ENTQRY": (
        "當進入查詢模式鍵被按下時觸發", "處理進入查詢模式動作",
        "前端 List Tab 或 Filter - 不需轉換"),
    "KEY-EXEQRY": (
        "當執行查詢鍵被按下時觸發", "處理執行查詢動作",
        "MboSet.setWhere() - 查詢條件設定"),
    "KEY-NXTREC": (
        "當下一筆記錄鍵被按下時觸發", "處理移動至下一筆記錄",
        "前端導航 - 不需轉換"),
    "KEY-PRVREC": (
        "當上一筆記錄鍵被按下時觸發", "處理移動至上一筆記錄",
        "前端導航 - 不需轉換"),
    "KEY-CREREC": (
        "當新增記錄鍵被按下時觸發", "處理新增記錄動作",
        "Mbo.add() + Mbo.init()"),
    "KEY-CLRFRM": (
        "當清除表單鍵被按下時觸發", "處理清除表單動作",
        "前端 Clear 按鈕 - 不需轉換"),
}


def trigger_event_info(name: str) -> Tuple[str, str, str]:
    """(description, server-side use, target location) for an event name."""
    upper = (name or "").upper()
    return TRIGGER_EVENTS.get(upper, (
        f"{upper} 觸發器",
        "自定義邏輯處理",
        "依據業務邏輯選擇適當的 Mbo/AppBean 方法",
    ))


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass
class ExtractedSql:
    type: SqlStatementType
    statement: str
    tables: List[str] = field(default_factory=list)
    fields: List[str] = field(default_factory=list)


@dataclass
class BusinessRule:
    type: BusinessRuleType
    description: str
    affected_fields: List[str] = field(default_factory=list)


@dataclass
class TriggerSpec:
    no: int
    name: str
    event_description: str = ""
    java_use: str = ""
    maximo_location: str = ""
    level: str = FORM_LEVEL
    block_name: str = ""
    trigger_text: str = ""
    sql_statements: List[ExtractedSql] = field(default_factory=list)
    business_rules: List[BusinessRule] = field(default_factory=list)
    summary: str = ""


@dataclass
class BlockTriggers:
    block_name: str
    triggers: List[TriggerSpec] = field(default_factory=list)


@dataclass
class TriggerSection:
    form_triggers: List[TriggerSpec] = field(default_factory=list)
    block_triggers: List[BlockTriggers] = field(default_factory=list)

    @property
    def total_count(self) -> int:
        return len(self.form_triggers) + sum(len(b.triggers) for b in self.block_triggers)

    def all_triggers(self) -> List[TriggerSpec]:
        result = list(self.form_triggers)
        for block in self.block_triggers:
            result.extend(block.triggers)
        return result

    def statistics(self) -> dict:
        by_event: Dict[str, int] = {}
        for trigger in self.all_triggers():
            by_event[trigger.name] = by_event.get(trigger.name, 0) + 1
        return {
            "total_count": self.total_count,
            "form_level_count": len(self.form_triggers),
            "block_level_count": self.total_count - len(self.form_triggers),
            "by_event_type": by_event,
        }

    def to_dict(self) -> dict:
        data = _plain(asdict(self))
        data["statistics"] = self.statistics()
        return data


def _plain(node):
    if isinstance(node, Enum):
        return node.value
    if isinstance(node, dict):
        return {k: _plain(v) for k, v in node.items()}
    if isinstance(node, list):
        return [_plain(v) for v in node]
    return node


# ---------------------------------------------------------------------------
# PL/SQL scanning
# ---------------------------------------------------------------------------

_SIMPLE_PATTERNS = (
    re.compile(r"^\s*null\s*;?\s*\Z", re.IGNORECASE),
    re.compile(r"^\s*do_key\s*\([^)]+\)\s*;?\s*\Z", re.IGNORECASE),
)
_CURSOR_RE = re.compile(r"cursor\s+\w+\s+is\s+(select\s+([\s\S]*?)\s+from\s+([\s\S]*?))(?:;|\Z)", re.IGNORECASE)
_CURSOR_TAIL_RE = re.compile(r"cursor\s+\w+\s+is\s*\Z", re.IGNORECASE)
_SELECT_INTO_RE = re.compile(r"\bselect\s+([\s\S]*?)\s+into\s+[\s\S]*?\s+from\s+(\w+)", re.IGNORECASE)
_FUNC_ASSIGN_RE = re.compile(r":(\w+\.\w+)\s*:=\s*(\w+)\s*\(", re.IGNORECASE)
_PROC_CALL_RE = re.compile(r"(?:^|;|\s)(p_\w+|sf_\w+)\s*(?:\([^)]*\))?\s*;", re.IGNORECASE)
_FROM_RE = re.compile(r"from\s+(\w+)", re.IGNORECASE)
_ALIASED_RE = re.compile(r"^(\w+(?:\.\w+)?)\s+(?:as\s+)?(\w+)$", re.IGNORECASE)
_IDENT_RE = re.compile(r"^(\w+(?:\.\w+)?)$")
_ITEM_REF_RE = re.compile(r":(\w+\.\w+)")

_POPULATE_RE = re.compile(r":(\w+\.\w+)\s*:=\s*(?!null|true|false|:)(\w+)\s*\(", re.IGNORECASE)
_CALC_RE = re.compile(r":(\w+\.\w+)\s*:=\s*:[\w.]+\s*[+\-*/]\s*:[\w.]+", re.IGNORECASE)
_NAVIGATION_RE = re.compile(r"go_block|go_item|next_block|previous_block|next_item|previous_item",
                            re.IGNORECASE)
_MASTER_DETAIL_RE = re.compile(r"cursor\s+\w+\s+is\s+select[\s\S]*?where[\s\S]*?=\s*:\w+\.\w+",
                               re.IGNORECASE)
_ALERT_RES = (
    re.compile(r"s_alert\s*\([^,]+,\s*'([^']+)'", re.IGNORECASE),
    re.compile(r"show_alert\s*\([^,]+,\s*'([^']+)'", re.IGNORECASE),
    re.compile(r"show_alert_message\s*\('([^']+)'", re.IGNORECASE),
)
_CONDITION_RE = re.compile(r"if\s+([\s\S]+?)\s+then", re.IGNORECASE)

BUILTIN_FUNCTIONS = {"null", "true", "false", "nvl", "trunc", "to_char", "to_date", "to_number"}

_CUSTOM_DESCRIPTIONS = (
    ("BUTTON", "按鈕事件處理"),
    ("QUERY", "查詢處理"),
    ("INSERT", "新增前/後處理"),
    ("UPDATE", "更新前/後處理"),
    ("DELETE", "刪除前/後處理"),
)

_SUMMARY_LABELS = (
    (BusinessRuleType.VALIDATION, "資料驗證"),
    (BusinessRuleType.AUTO_POPULATE, "自動產生"),
    (BusinessRuleType.CALCULATION, "欄位計算"),
    (BusinessRuleType.NAVIGATION, "導航控制"),
    (BusinessRuleType.MASTER_DETAIL, "主從關聯"),
    (BusinessRuleType.DELETE_CHECK, "刪除檢查"),
)


def _unique(values) -> List[str]:
    result = []
    for value in values:
        if value not in result:
            result.append(value)
    return result


def decode_trigger_text(text: str) -> str:
    """Trigger body with XML character references resolved."""
    return html.unescape(text or "")


def is_simple_trigger(text: str) -> bool:
    """``null;`` or a bare ``do_key(...)`` call."""
    return any(p.match(text or "") for p in _SIMPLE_PATTERNS)


def select_fields(select_clause: str) -> List[str]:
    """Column names of a select list; expressions and ``*`` are skipped."""
    cleaned = re.sub(r"\bdistinct\b", "", select_clause, flags=re.IGNORECASE).strip()
    found = []
    for part in cleaned.split(","):
        part = part.strip()
        m = _ALIASED_RE.match(part) or _IDENT_RE.match(part)
        if m:
            found.append(m.group(1))
    return _unique(found)


def extract_sql_statements(plsql: str) -> List[ExtractedSql]:
    """Cursors, SELECT ... INTO, function-call assignments and procedure calls."""
    plsql = plsql or ""
    if is_simple_trigger(plsql):
        return []
    statements: List[ExtractedSql] = []

    for m in _CURSOR_RE.finditer(plsql):
        statements.append(ExtractedSql(
            type=SqlStatementType.CURSOR,
            statement=m.group(0).strip(),
            tables=_unique(t.lower() for t in _FROM_RE.findall("from " + m.group(3).strip())),
            fields=select_fields(m.group(2).strip()),
        ))

    for m in _SELECT_INTO_RE.finditer(plsql):
        if _CURSOR_TAIL_RE.search(plsql[:m.start()]):
            continue
        statements.append(ExtractedSql(
            type=SqlStatementType.SELECT,
            statement=m.group(0).strip(),
            tables=[m.group(2).lower()],
            fields=select_fields(m.group(1)),
        ))

    for m in _FUNC_ASSIGN_RE.finditer(plsql):
        if m.group(2).lower() in BUILTIN_FUNCTIONS:
            continue
        statements.append(ExtractedSql(
            type=SqlStatementType.FUNCTION_CALL,
            statement=m.group(0).strip(),
            fields=[m.group(1)],
        ))

    for m in _PROC_CALL_RE.finditer(plsql):
        name = m.group(1)
        if any(name in s.statement for s in statements):
            continue
        statements.append(ExtractedSql(
            type=SqlStatementType.FUNCTION_CALL,
            statement=name + ("(...)" if "(" in m.group(0) else ""),
        ))

    return statements


def affected_fields(plsql: str) -> List[str]:
    """``:block.item`` references, without ``:system.*`` and ``:global.*``."""
    return _unique(
        ref for ref in _ITEM_REF_RE.findall(plsql or "")
        if not ref.lower().startswith(("system.", "global."))
    )


def _validation_description(plsql: str) -> str:
    for pattern in _ALERT_RES:
        m = pattern.search(plsql)
        if m:
            return f"驗證規則: {m.group(1)}"
    m = _CONDITION_RE.search(plsql)
    if m:
        return f"驗證條件: {m.group(1).strip()[:50]}"
    return "資料驗證"


def _custom_description(trigger_name: str) -> str:
    upper = trigger_name.upper()
    for key, description in _CUSTOM_DESCRIPTIONS:
        if key in upper:
            return description
    return "自定義邏輯處理"


def analyze_business_rules(plsql: str, trigger_name: str) -> List[BusinessRule]:
    """Classify what a trigger body does. Falls back to a single CUSTOM rule."""
    plsql = plsql or ""
    if is_simple_trigger(plsql):
        return []
    lower = plsql.lower()
    rules: List[BusinessRule] = []

    if "raise form_trigger_failure" in lower or "s_alert" in lower or "show_alert" in lower:
        rules.append(BusinessRule(BusinessRuleType.VALIDATION, _validation_description(plsql),
                                  affected_fields(plsql)))

    for m in _POPULATE_RE.finditer(plsql):
        rules.append(BusinessRule(BusinessRuleType.AUTO_POPULATE, f"自動產生 {m.group(1)} 的值",
                                  [m.group(1)]))

    for m in _CALC_RE.finditer(plsql):
        rules.append(BusinessRule(BusinessRuleType.CALCULATION, f"計算 {m.group(1)} 的值",
                                  [m.group(1)]))

    if _NAVIGATION_RE.search(plsql):
        rules.append(BusinessRule(BusinessRuleType.NAVIGATION, "導航至指定區塊或欄位"))

    if _MASTER_DETAIL_RE.search(plsql):
        rules.append(BusinessRule(BusinessRuleType.MASTER_DETAIL, "主從關聯資料處理",
                                  affected_fields(plsql)))

    if trigger_name.upper() == "PRE-DELETE" and "select" in lower and "count" in lower:
        rules.append(BusinessRule(BusinessRuleType.DELETE_CHECK, "刪除前檢查關聯資料"))

    if not rules:
        rules.append(BusinessRule(BusinessRuleType.CUSTOM, _custom_description(trigger_name),
                                  affected_fields(plsql)))
    return rules


def summarize_trigger(plsql: str, trigger_name: str) -> str:
    """One-line summary of a trigger body for the specification tables."""
    text = (plsql or "").strip()
    if re.match(r"^null\s*;?\Z", text, re.IGNORECASE):
        return "無特殊處理"
    if re.match(r"^do_key\s*\(", text, re.IGNORECASE):
        return "系統按鍵操作"

    rules = analyze_business_rules(plsql, trigger_name)
    if not rules:
        return "無特殊處理"

    kinds = {r.type for r in rules}
    parts = []
    for kind, label in _SUMMARY_LABELS:
        if kind not in kinds:
            continue
        if kind == BusinessRuleType.AUTO_POPULATE:
            names = ", ".join(
                f.split(".")[-1]
                for r in rules if r.type == kind
                for f in r.affected_fields
            )
            label = f"{label} ({names})" if names else label
        parts.append(label)

    if not parts:
        custom = [r for r in rules if r.type == BusinessRuleType.CUSTOM]
        return custom[0].description if custom else "自定義邏輯"
    return "、".join(parts)


# ---------------------------------------------------------------------------
# Module analysis
# ---------------------------------------------------------------------------

def analyze_trigger(trigger: FmbTrigger, no: int, level: str = FORM_LEVEL,
                    block_name: str = "") -> TriggerSpec:
    text = decode_trigger_text(trigger.trigger_text)
    description, java_use, location = trigger_event_info(trigger.name)
    return TriggerSpec(
        no=no,
        name=trigger.name,
        event_description=description,
        java_use=java_use,
        maximo_location=location,
        level=level,
        block_name=block_name,
        trigger_text=text,
        sql_statements=extract_sql_statements(text),
        business_rules=analyze_business_rules(text, trigger.name),
        summary=summarize_trigger(text, trigger.name),
    )


def analyze_triggers(module: FmbModule) -> TriggerSection:
    """Analyse every form-level and block-level trigger of a parsed module."""
    section = TriggerSection()
    no = 1
    for trigger in module.triggers:
        section.form_triggers.append(analyze_trigger(trigger, no))
        no += 1

    for block in module.blocks:
        if not block.triggers:
            continue
        group = BlockTriggers(block_name=block.name)
        for trigger in block.triggers:
            group.triggers.append(analyze_trigger(trigger, no, BLOCK_LEVEL, block.name))
            no += 1
        section.block_triggers.append(group)

    logger.debug("Analysed %d triggers (%d form level) in %s",
                 section.total_count, len(section.form_triggers), module.name)
    return section
