from typing import Dict, List, Mapping, Optional


# carrier display name -> URL prefix; the tracking number is appended as-is
TRACKING_URL_TEMPLATES: Dict[str, str] = {
    "CJ대한통운": "https://www.cjlogistics.com/ko/tool/parcel/tracking?gnbInvcNo=",
    "한진택배": "https://www.hanjin.com/kor/CMS/DeliveryMgr/WaybillResult.do?mCode=MN038&schLang=KR&wblnumText2=",
    "롯데택배": "https://www.lotteglogis.com/mobile/reservation/tracking/index?InvNo=",
    "우체국택배": "https://service.epost.go.kr/trace.RetrieveDomRigiTraceList.comm?sid1=",
    "로젠택배": "https://www.ilogen.com/web/personal/trace/",
    "DHL": "https://www.dhl.com/kr-ko/home/tracking/tracking-express.html?submit=1&tracking-id=",
    "FedEx": "https://www.fedex.com/fedextrack/?tracknumbers=",
    "UPS": "https://www.ups.com/track?loc=ko_KR&tracknum=",
}


class TrackingUrlResolver:
    """Maps a courier name and tracking number to the carrier's public tracking page."""

    def __init__(self, templates: Optional[Mapping[str, str]] = None):
        self._templates = dict(TRACKING_URL_TEMPLATES if templates is None else templates)

    def resolve(self, courier: Optional[str], tracking_number: Optional[str]) -> Optional[str]:
        if not courier or not tracking_number:
            return None
        template = self._templates.get(courier)
        if not template:
            return None
        return f"{template}{tracking_number}"

    def carriers(self) -> List[str]:
        return list(self._templates)


default_resolver = TrackingUrlResolver()


def resolve_tracking_url(courier: Optional[str], tracking_number: Optional[str]) -> Optional[str]:
    return default_resolver.resolve(courier, tracking_number)
