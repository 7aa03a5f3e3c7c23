from django import forms

from .models import Team


class TeamForm(forms.ModelForm):
    max_players = forms.IntegerField(min_value=1, max_value=50)
    players_needed = forms.IntegerField(min_value=0, required=False)

    class Meta:
        model = Team
        fields = [
            'name',
            'sport',
            'description',
            'logo_url',
            'max_players',
            'looking_for_players',
            'players_needed',
        ]

    def clean_name(self):
        name = (self.cleaned_data.get('name') or '').strip()
        if len(name) < 3:
            raise forms.ValidationError('Team name must be at least 3 characters.')
        return name

    def clean_sport(self):
        return (self.cleaned_data.get('sport') or '').strip().lower()

    def clean_players_needed(self):
        return self.cleaned_data.get('players_needed') or 0
