import pytest

from spsites.extraction import extract_site_collection
from spsites.extraction.extractor import check_sharepoint_url, normalize_line, remove_dot_segments, split_origin, trim
from spsites.extraction.patterns import DOMAIN_TYPO, MISSING_PROTOCOL, NOT_TARGET_DOMAIN


def site(url):
    result = extract_site_collection(url)
    assert not result.is_error, result
    return result.site_collection


class TestSiteCollectionPaths:
    def test_sites_prefix_truncates_document_path(self):
        url = 'https://contoso.sharepoint.com/sites/Marketing/Shared Documents/Report.docx'
        assert site(url) == 'https://contoso.sharepoint.com/sites/Marketing'

    def test_teams_prefix(self):
        assert site('https://contoso.sharepoint.com/teams/Sales/Documents/Q4.xlsx') == \
            'https://contoso.sharepoint.com/teams/Sales'

    def test_personal_prefix_onedrive(self):
        url = 'https://contoso-my.sharepoint.com/personal/jane_contoso_com/Documents/notes.docx'
        assert site(url) == 'https://contoso-my.sharepoint.com/personal/jane_contoso_com'

    def test_root_site_for_unknown_path(self):
        assert site('https://contoso.sharepoint.com/SitePages/Home.aspx') == 'https://contoso.sharepoint.com'

    def test_bare_host(self):
        assert site('https://contoso.sharepoint.com') == 'https://contoso.sharepoint.com'

    def test_prefix_without_segment_is_root(self):
        assert site('https://contoso.sharepoint.com/sites/') == 'https://contoso.sharepoint.com'

    def test_prefix_must_be_whole_segment(self):
        assert site('https://contoso.sharepoint.com/sitesarchive/Old') == 'https://contoso.sharepoint.com'

    def test_host_and_segment_case_preserved_prefix_lowercased(self):
        url = 'https://Contoso.SharePoint.com/SITES/HumanResources/Forms/AllItems.aspx'
        assert site(url) == 'https://Contoso.SharePoint.com/sites/HumanResources'

    def test_query_and_fragment_dropped(self):
        assert site('https://contoso.sharepoint.com/sites/HR/Page.aspx?web=1#top') == \
            'https://contoso.sharepoint.com/sites/HR'

    def test_query_directly_after_segment(self):
        assert site('https://contoso.sharepoint.com/sites/HR?web=1') == 'https://contoso.sharepoint.com/sites/HR'

    def test_credentials_not_part_of_origin(self):
        assert site('https://user@contoso.sharepoint.com/sites/HR/x') == 'https://contoso.sharepoint.com/sites/HR'

    def test_http_scheme_kept(self):
        assert site('http://contoso.sharepoint.com/teams/Ops') == 'http://contoso.sharepoint.com/teams/Ops'

    def test_surrounding_whitespace(self):
        result = extract_site_collection('   https://contoso.sharepoint.com/sites/A/b   ')
        assert result.site_collection == 'https://contoso.sharepoint.com/sites/A'
        assert result.original == 'https://contoso.sharepoint.com/sites/A/b'


class TestInvariance:
    @pytest.mark.parametrize('url', [
        'https://contoso.sharepoint.com/sites/Marketing',
        'https://contoso.sharepoint.com',
        'https://contoso.sharepoint.com/SitePages/Home.aspx',
        'https://contoso-my.sharepoint.com/personal/jane_contoso_com',
    ])
    def test_trailing_slashes_ignored(self, url):
        expected = extract_site_collection(url)
        assert extract_site_collection(url + '/').site_collection == expected.site_collection
        assert extract_site_collection(url + '///').site_collection == expected.site_collection

    @pytest.mark.parametrize('url', [
        'https://contoso.sharepoint.com/sites/Marketing/Shared Documents/Report.docx',
        'https://contoso.sharepoint.com/teams/Sales/Documents/Q4.xlsx',
        'https://contoso.sharepoint.com/SitePages/Home.aspx',
        'https://Contoso.SharePoint.com/Personal/Bob/Documents',
    ])
    def test_extraction_is_idempotent(self, url):
        first = site(url)
        assert site(first) == first
        assert site(first + '/Some/Deeper/Page.aspx') == first


class TestFailures:
    def test_empty(self):
        for raw in ('', '   ', '///'):
            result = extract_site_collection(raw)
            assert result.is_error
            assert result.error_reason == 'Empty URL'
            assert result.error_kind == 'empty_url'
            assert result.site_collection is None

    def test_missing_protocol(self):
        result = extract_site_collection('not a url')
        assert result.is_error
        assert result.error_reason == 'Missing protocol (http/https)'
        assert result.site_collection is None
        assert result.original == 'not a url'

    def test_scheme_check_is_case_sensitive(self):
        assert extract_site_collection('HTTPS://A.SHAREPOINT.COM/SITES/X').error_kind == 'missing_protocol'
        assert extract_site_collection('ftp://contoso.sharepoint.com/sites/X').error_kind == 'missing_protocol'

    @pytest.mark.parametrize('url', [
        'https://contoso.sharepointcom/sites/Bad',
        'https://contoso.sharepoint.co/sites/Bad',
        'https://contoso.sharepoint.co',
        'https://contoso.SHAREPOINTCOM',
    ])
    def test_domain_typo(self, url):
        result = extract_site_collection(url)
        assert result.is_error
        assert result.error_reason == 'Typo in domain (missing dot or incomplete)'
        assert result.site_collection is None

    @pytest.mark.parametrize('url', [
        'https://example.com/sites/A',
        'https://contoso.sharepoint.co.uk/sites/A',
        'https://contoso.sharepoint.com.evil.net/sites/A',
        'https://contoso.sharepoint.com?x=1',
    ])
    def test_not_sharepoint(self, url):
        result = extract_site_collection(url)
        assert result.error_reason == 'Not a SharePoint URL'
        assert result.error_kind == 'not_target_domain'
        assert result.site_collection is None

    @pytest.mark.parametrize('url', [
        'https://con toso.sharepoint.com/sites/A',
        'https://[contoso.sharepoint.com/sites/A',
        'https://-contoso.sharepoint.com/sites/A',
    ])
    def test_malformed_echoes_input(self, url):
        result = extract_site_collection(url + '/')
        assert result.is_error
        assert result.error_reason == 'Malformed URL'
        assert result.error_kind == 'malformed_url'
        # the only failure that carries a site_collection value
        assert result.site_collection == url
        assert result.display_value == url


class TestHelpers:
    def test_normalize_line(self):
        assert normalize_line('  https://a.sharepoint.com/sites/x//  ') == 'https://a.sharepoint.com/sites/x'
        assert normalize_line(None) == ''

    def test_check_sharepoint_url(self):
        assert check_sharepoint_url('https://a.sharepoint.com/x') is None
        assert check_sharepoint_url('a.sharepoint.com') is MISSING_PROTOCOL
        assert check_sharepoint_url('https://a.sharepointcom') is DOMAIN_TYPO
        assert check_sharepoint_url('https://a.example.org') is NOT_TARGET_DOMAIN

    def test_split_origin_ports(self):
        assert split_origin('https://a.sharepoint.com:8443/sites/X') == ('https://a.sharepoint.com:8443', '/sites/X')
        assert split_origin('https://a.sharepoint.com:443/sites/X') == ('https://a.sharepoint.com', '/sites/X')
        assert split_origin('http://a.sharepoint.com:80') == ('http://a.sharepoint.com', '')

    def test_split_origin_rejects_bad_port(self):
        with pytest.raises(ValueError):
            split_origin('https://a.sharepoint.com:99999/sites/X')
        with pytest.raises(ValueError):
            split_origin('https://a.sharepoint.com:abc/sites/X')


class TestDotSegments:
    @pytest.mark.parametrize('url, expected', [
        ('https://contoso.sharepoint.com/sites/../teams/Sales/x.docx', 'https://contoso.sharepoint.com/teams/Sales'),
        ('https://contoso.sharepoint.com/sites/./HR/a.docx', 'https://contoso.sharepoint.com/sites/HR'),
        ('https://contoso.sharepoint.com/sites/%2E%2e/teams/Ops', 'https://contoso.sharepoint.com/teams/Ops'),
        ('https://contoso.sharepoint.com/sites/HR/..', 'https://contoso.sharepoint.com'),
        ('https://contoso.sharepoint.com/../../sites/HR/x', 'https://contoso.sharepoint.com/sites/HR'),
    ])
    def test_dot_segments_resolved_before_prefix_match(self, url, expected):
        assert site(url) == expected

    def test_remove_dot_segments(self):
        assert remove_dot_segments('') == ''
        assert remove_dot_segments('/a/b/../c/./d') == '/a/c/d'
        assert remove_dot_segments('/a/.%2e/b') == '/b'
        assert remove_dot_segments('/a/b/.') == '/a/b/'


class TestByteOrderMark:
    def test_leading_bom_is_trimmed(self):
        result = extract_site_collection('\ufeffhttps://contoso.sharepoint.com/sites/HR/a.docx')
        assert not result.is_error
        assert result.original == 'https://contoso.sharepoint.com/sites/HR/a.docx'
        assert result.site_collection == 'https://contoso.sharepoint.com/sites/HR'

    def test_trim(self):
        assert trim('  \ufeff https://a.sharepoint.com \t') == 'https://a.sharepoint.com'
        assert trim('\ufeff') == ''
        assert trim(None) == ''
